"""Gemini multimodal model used as a transcription-only OCR engine.

Opt-in only: the orchestrator never reaches this backend unless the
caller prefers it explicitly.
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Dict

import httpx

from receiptscan.core.config import settings
from receiptscan.models.enums import RecognitionBackendId
from receiptscan.models.schemas import GeminiCredential, RecognitionRequest
from receiptscan.services.ocr_base import RecognitionBackend
from receiptscan.utils.prompts import get_transcription_prompt


logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


def build_payload(request: RecognitionRequest) -> Dict[str, Any]:
    return {
        "contents": [
            {
                "parts": [
                    {
                        "inline_data": {
                            "mime_type": request.content_type or "image/jpeg",
                            "data": base64.b64encode(request.content).decode("utf-8"),
                        }
                    },
                    {"text": get_transcription_prompt()},
                ]
            }
        ],
        # Low temperature keeps the transcription literal
        "generation_config": {"temperature": 0.1, "max_output_tokens": 2048},
    }


def parse_gemini_response(payload: Dict[str, Any]) -> str:
    candidates = payload.get("candidates") or []
    if not candidates:
        return ""
    parts = ((candidates[0] or {}).get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts if isinstance(part, dict))


class GeminiOcrService(RecognitionBackend):
    backend_id = RecognitionBackendId.GEMINI

    def _recognize(self, request: RecognitionRequest) -> str:
        if not isinstance(self.credential, GeminiCredential):
            raise self._unavailable("no API key configured")
        try:
            resp = httpx.post(
                GEMINI_URL.format(model=settings.GEMINI_MODEL),
                params={"key": self.credential.api_key.get_secret_value()},
                json=build_payload(request),
                timeout=self.timeout,
            )
            resp.raise_for_status()
            text = parse_gemini_response(resp.json())
        except httpx.HTTPStatusError as exc:
            raise self._call_failed(f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise self._call_failed(f"transport error: {type(exc).__name__}") from exc
        except (ValueError, AttributeError, TypeError) as exc:
            raise self._call_failed(f"unexpected response: {exc}") from exc
        logger.debug("[gemini] recognised %d characters", len(text))
        return text
