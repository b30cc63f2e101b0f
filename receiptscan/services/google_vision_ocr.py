"""Google Cloud Vision ``TEXT_DETECTION`` over the REST API."""

from __future__ import annotations

import base64
import logging
from typing import Any, Dict

import httpx

from receiptscan.models.enums import RecognitionBackendId
from receiptscan.models.schemas import GoogleVisionCredential, RecognitionRequest
from receiptscan.services.ocr_base import RecognitionBackend


logger = logging.getLogger(__name__)

VISION_URL = "https://vision.googleapis.com/v1/images:annotate"


def parse_vision_response(payload: Dict[str, Any]) -> str:
    """Full detected text: the first annotation covers the whole image."""
    responses = payload.get("responses") or []
    if not responses:
        return ""
    first = responses[0] or {}
    if first.get("error"):
        raise ValueError(first["error"].get("message") or "vision API returned an error")
    annotations = first.get("textAnnotations") or []
    if not annotations:
        return ""
    return annotations[0].get("description") or ""


class GoogleVisionOcrService(RecognitionBackend):
    backend_id = RecognitionBackendId.GOOGLE_VISION

    def _recognize(self, request: RecognitionRequest) -> str:
        if not isinstance(self.credential, GoogleVisionCredential):
            raise self._unavailable("no API key configured")
        body = {
            "requests": [
                {
                    "image": {"content": base64.b64encode(request.content).decode("utf-8")},
                    "features": [{"type": "TEXT_DETECTION", "maxResults": 1}],
                }
            ]
        }
        try:
            resp = httpx.post(
                VISION_URL,
                params={"key": self.credential.api_key.get_secret_value()},
                json=body,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            text = parse_vision_response(resp.json())
        except httpx.HTTPStatusError as exc:
            raise self._call_failed(f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise self._call_failed(f"transport error: {type(exc).__name__}") from exc
        except (ValueError, AttributeError, TypeError) as exc:
            raise self._call_failed(f"unexpected response: {exc}") from exc
        logger.debug("[google_vision] recognised %d characters", len(text))
        return text
