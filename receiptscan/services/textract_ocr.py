"""AWS Textract ``DetectDocumentText`` via boto3.

Only ``LINE`` blocks are kept, joined with newlines in reading order.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from receiptscan.models.enums import RecognitionBackendId
from receiptscan.models.schemas import RecognitionRequest, TextractCredential
from receiptscan.services.ocr_base import RecognitionBackend


logger = logging.getLogger(__name__)


def join_line_blocks(blocks: Iterable[Dict[str, Any]]) -> str:
    return "\n".join(
        block.get("Text", "")
        for block in blocks
        if block.get("BlockType") == "LINE" and block.get("Text")
    )


class TextractOcrService(RecognitionBackend):
    backend_id = RecognitionBackendId.AWS_TEXTRACT

    def _client(self, credential: TextractCredential):
        return boto3.client(
            "textract",
            aws_access_key_id=credential.access_key_id,
            aws_secret_access_key=credential.secret_access_key.get_secret_value(),
            region_name=credential.region,
            config=Config(
                connect_timeout=self.timeout,
                read_timeout=self.timeout,
                retries={"max_attempts": 1},
            ),
        )

    def _recognize(self, request: RecognitionRequest) -> str:
        if not isinstance(self.credential, TextractCredential):
            raise self._unavailable("no AWS credentials configured")
        try:
            response = self._client(self.credential).detect_document_text(
                Document={"Bytes": request.content}
            )
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "ClientError")
            raise self._call_failed(f"textract rejected the request: {code}") from exc
        except BotoCoreError as exc:
            raise self._call_failed(f"textract call failed: {type(exc).__name__}") from exc
        text = join_line_blocks(response.get("Blocks") or [])
        logger.debug("[aws_textract] recognised %d characters", len(text))
        return text
