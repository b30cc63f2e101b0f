from __future__ import annotations

import io

import httpx
import pytest
from botocore.exceptions import ClientError
from PIL import Image
from pydantic import SecretStr

from receiptscan.models.enums import FailureReason, RecognitionBackendId as B
from receiptscan.models.schemas import (
    GeminiCredential,
    GoogleVisionCredential,
    RecognitionRequest,
    TextractCredential,
)
from receiptscan.services import gemini_ocr, google_vision_ocr, tesseract_ocr
from receiptscan.services.gemini_ocr import GeminiOcrService, build_payload, parse_gemini_response
from receiptscan.services.google_vision_ocr import VISION_URL, GoogleVisionOcrService, parse_vision_response
from receiptscan.services.ocr_base import (
    BackendCallFailed,
    BackendUnavailable,
    MalformedCredential,
    NoTextRecognized,
    parse_credential,
)
from receiptscan.services.tesseract_ocr import TesseractOcrService
from receiptscan.services.textract_ocr import TextractOcrService, join_line_blocks


def _png_bytes(size=(40, 20)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, "white").save(buf, format="PNG")
    return buf.getvalue()


REQUEST = RecognitionRequest(content=b"image-bytes", content_type="image/jpeg")
GOOGLE_KEY = GoogleVisionCredential(api_key=SecretStr("g-key"))
GEMINI_KEY = GeminiCredential(api_key=SecretStr("m-key"))
AWS_KEY = TextractCredential(access_key_id="AKIA", secret_access_key=SecretStr("secret"))


def _fake_post(status_code=200, payload=None, exc=None, seen=None):
    def post(url, params=None, json=None, timeout=None):
        if seen is not None:
            seen.update(url=url, params=params, json=json, timeout=timeout)
        if exc is not None:
            raise exc
        return httpx.Response(status_code, json=payload or {}, request=httpx.Request("POST", url))
    return post


# ---------------------------------------------------------------------------
# Credential parsing


def test_parse_credential_textract_blob():
    credential = parse_credential(B.AWS_TEXTRACT, '{"accessKeyId": "AKIA", "secretAccessKey": "s", "region": "eu-west-1"}')
    assert credential.access_key_id == "AKIA"
    assert credential.region == "eu-west-1"


@pytest.mark.parametrize("raw", ["not json", "[1, 2]", '{"accessKeyId": "AKIA"}', '{"accessKeyId": "", "secretAccessKey": "s"}'])
def test_parse_credential_textract_malformed(raw):
    with pytest.raises(MalformedCredential) as excinfo:
        parse_credential(B.AWS_TEXTRACT, raw)
    assert excinfo.value.reason is FailureReason.MALFORMED_CREDENTIAL


def test_parse_credential_blank_and_plain_keys():
    assert parse_credential(B.GOOGLE_VISION, "   ") is None
    assert parse_credential(B.TESSERACT, "anything") is None
    assert parse_credential(B.GEMINI, " key ").api_key.get_secret_value() == "key"


# ---------------------------------------------------------------------------
# Google Vision


def test_parse_vision_response():
    payload = {"responses": [{"textAnnotations": [{"description": "TOTAL 5.00"}, {"description": "TOTAL"}]}]}
    assert parse_vision_response(payload) == "TOTAL 5.00"
    assert parse_vision_response({"responses": [{}]}) == ""


def test_google_vision_success(monkeypatch):
    seen = {}
    payload = {"responses": [{"textAnnotations": [{"description": "CAFE\nTotal 4.50"}]}]}
    monkeypatch.setattr(google_vision_ocr.httpx, "post", _fake_post(payload=payload, seen=seen))
    text = GoogleVisionOcrService(credential=GOOGLE_KEY, timeout=5).extract_text(REQUEST)
    assert text == "CAFE\nTotal 4.50"
    assert seen["url"] == VISION_URL
    assert seen["params"] == {"key": "g-key"}
    assert seen["json"]["requests"][0]["features"] == [{"type": "TEXT_DETECTION", "maxResults": 1}]
    assert seen["timeout"] == 5.0


def test_google_vision_without_key_is_unavailable():
    with pytest.raises(BackendUnavailable):
        GoogleVisionOcrService().extract_text(REQUEST)


def test_google_vision_http_error(monkeypatch):
    monkeypatch.setattr(google_vision_ocr.httpx, "post", _fake_post(status_code=403))
    with pytest.raises(BackendCallFailed) as excinfo:
        GoogleVisionOcrService(credential=GOOGLE_KEY).extract_text(REQUEST)
    assert "g-key" not in str(excinfo.value)


def test_google_vision_transport_error(monkeypatch):
    monkeypatch.setattr(google_vision_ocr.httpx, "post", _fake_post(exc=httpx.ConnectTimeout("timed out")))
    with pytest.raises(BackendCallFailed):
        GoogleVisionOcrService(credential=GOOGLE_KEY).extract_text(REQUEST)


def test_google_vision_api_error_payload(monkeypatch):
    payload = {"responses": [{"error": {"message": "bad image"}}]}
    monkeypatch.setattr(google_vision_ocr.httpx, "post", _fake_post(payload=payload))
    with pytest.raises(BackendCallFailed):
        GoogleVisionOcrService(credential=GOOGLE_KEY).extract_text(REQUEST)


def test_google_vision_empty_result(monkeypatch):
    monkeypatch.setattr(google_vision_ocr.httpx, "post", _fake_post(payload={"responses": [{}]}))
    with pytest.raises(NoTextRecognized):
        GoogleVisionOcrService(credential=GOOGLE_KEY).extract_text(REQUEST)


# ---------------------------------------------------------------------------
# AWS Textract


class _FakeTextract:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.documents = []

    def detect_document_text(self, Document):
        self.documents.append(Document)
        if self.exc is not None:
            raise self.exc
        return self.response


def test_join_line_blocks_keeps_lines_only():
    blocks = [
        {"BlockType": "PAGE"},
        {"BlockType": "LINE", "Text": "ACME"},
        {"BlockType": "WORD", "Text": "ACME"},
        {"BlockType": "LINE", "Text": "Total 9.99"},
    ]
    assert join_line_blocks(blocks) == "ACME\nTotal 9.99"


def test_textract_success(monkeypatch):
    client = _FakeTextract(response={"Blocks": [{"BlockType": "LINE", "Text": "Total 9.99"}]})
    monkeypatch.setattr(TextractOcrService, "_client", lambda self, credential: client)
    assert TextractOcrService(credential=AWS_KEY).extract_text(REQUEST) == "Total 9.99"
    assert client.documents == [{"Bytes": b"image-bytes"}]


def test_textract_client_error(monkeypatch):
    error = ClientError({"Error": {"Code": "AccessDeniedException", "Message": "nope"}}, "DetectDocumentText")
    monkeypatch.setattr(TextractOcrService, "_client", lambda self, credential: _FakeTextract(exc=error))
    with pytest.raises(BackendCallFailed):
        TextractOcrService(credential=AWS_KEY).extract_text(REQUEST)


def test_textract_without_credentials_is_unavailable():
    with pytest.raises(BackendUnavailable):
        TextractOcrService().extract_text(REQUEST)


# ---------------------------------------------------------------------------
# Gemini


def test_gemini_payload_shape():
    payload = build_payload(REQUEST)
    parts = payload["contents"][0]["parts"]
    assert parts[0]["inline_data"]["mime_type"] == "image/jpeg"
    assert "Transcribe" in parts[1]["text"]
    assert payload["generation_config"] == {"temperature": 0.1, "max_output_tokens": 2048}


def test_parse_gemini_response():
    payload = {"candidates": [{"content": {"parts": [{"text": "LINE 1\n"}, {"text": "LINE 2"}]}}]}
    assert parse_gemini_response(payload) == "LINE 1\nLINE 2"
    assert parse_gemini_response({}) == ""


def test_gemini_success(monkeypatch):
    payload = {"candidates": [{"content": {"parts": [{"text": "Total 3.00"}]}}]}
    monkeypatch.setattr(gemini_ocr.httpx, "post", _fake_post(payload=payload))
    assert GeminiOcrService(credential=GEMINI_KEY).extract_text(REQUEST) == "Total 3.00"


def test_gemini_http_error(monkeypatch):
    monkeypatch.setattr(gemini_ocr.httpx, "post", _fake_post(status_code=500))
    with pytest.raises(BackendCallFailed):
        GeminiOcrService(credential=GEMINI_KEY).extract_text(REQUEST)


# ---------------------------------------------------------------------------
# Tesseract


def test_tesseract_missing_binary(monkeypatch):
    monkeypatch.setattr(tesseract_ocr.shutil, "which", lambda cmd: None)
    with pytest.raises(BackendUnavailable):
        TesseractOcrService().extract_text(REQUEST)


def test_tesseract_success(monkeypatch):
    seen = {}

    def image_to_string(image, lang=None, timeout=None):
        seen.update(mode=image.mode, lang=lang)
        return "STORE\nTotal 1.00\n"

    monkeypatch.setattr(tesseract_ocr.shutil, "which", lambda cmd: "/usr/bin/tesseract")
    monkeypatch.setattr(tesseract_ocr.pytesseract, "image_to_string", image_to_string)
    request = RecognitionRequest(content=_png_bytes(), content_type="image/png")
    command_before = tesseract_ocr.pytesseract.pytesseract.tesseract_cmd
    assert TesseractOcrService().extract_text(request) == "STORE\nTotal 1.00"
    assert tesseract_ocr.pytesseract.pytesseract.tesseract_cmd == command_before
    assert seen == {"mode": "L", "lang": "eng"}


def test_tesseract_undecodable_image(monkeypatch):
    monkeypatch.setattr(tesseract_ocr.shutil, "which", lambda cmd: "/usr/bin/tesseract")
    with pytest.raises(BackendCallFailed):
        TesseractOcrService().extract_text(REQUEST)
