"""Prompt text for model-backed recognition.

The multimodal backend is used strictly as an OCR engine: it is asked
to transcribe, never to interpret, so the same field extraction rules
apply regardless of which backend produced the text.
"""

from __future__ import annotations

from textwrap import dedent


def get_transcription_prompt() -> str:
    """Return the instruction sent alongside a receipt image."""
    return dedent(
        """
        Transcribe all text visible in this receipt or invoice image
        exactly as printed. Preserve the original line breaks and the
        top-to-bottom reading order. Include every number, date, price
        and label. Do not summarise, translate, correct or reformat
        anything and do not add commentary. Output only the transcribed
        text.
        """
    ).strip()
