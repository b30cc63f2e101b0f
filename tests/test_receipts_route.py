from __future__ import annotations

import datetime as dt
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from receiptscan.api.dependencies import get_receipt_processor
from receiptscan.api.main import app
from receiptscan.core.config import settings
from receiptscan.models.enums import RecognitionBackendId
from receiptscan.models.schemas import ExtractedFields, ProcessingOutcome


class FakeProcessor:
    def __init__(self, outcome: ProcessingOutcome) -> None:
        self.outcome = outcome
        self.calls = []

    def process(self, request, config=None):
        self.calls.append((request, config))
        return self.outcome


@pytest.fixture
def processor():
    fake = FakeProcessor(
        ProcessingOutcome(
            extracted=ExtractedFields(amount=Decimal("13.00"), merchant="Walmart", date=dt.date(2024, 1, 15)),
            ocr_engine=RecognitionBackendId.TESSERACT,
        )
    )
    app.dependency_overrides[get_receipt_processor] = lambda: fake
    yield fake
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app)


def _image(content_type="image/jpeg", body=b"\xff\xd8fake"):
    return {"image": ("receipt.jpg", body, content_type)}


def test_upload_returns_present_fields(client, processor):
    resp = client.post("/receipts/upload", files=_image())
    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "extracted_data": {
            "amount": "13.00",
            "merchant": "Walmart",
            "date": "2024-01-15",
            "currency": "USD",
            "ocr_engine": "tesseract",
        },
    }
    request, config = processor.calls[0]
    assert request.content == b"\xff\xd8fake"
    assert request.content_type == "image/jpeg"
    assert config.preferred_backend is None
    assert config.credentials == {}


def test_upload_passes_preference_and_credentials(client, processor):
    blob = '{"accessKeyId": "AKIA", "secretAccessKey": "s"}'
    resp = client.post(
        "/receipts/upload",
        files=_image(),
        data={"ocr_engine": "aws_textract", "aws_textract_api_key": blob, "gemini_api_key": "  "},
    )
    assert resp.status_code == 200
    _, config = processor.calls[0]
    assert config.preferred_backend is RecognitionBackendId.AWS_TEXTRACT
    assert config.credentials == {RecognitionBackendId.AWS_TEXTRACT: blob}


def test_unknown_engine_means_no_preference(client, processor):
    resp = client.post("/receipts/upload", files=_image(), data={"ocr_engine": "abacus"})
    assert resp.status_code == 200
    assert processor.calls[0][1].preferred_backend is None


def test_missing_image_is_rejected(client, processor):
    resp = client.post("/receipts/upload", data={"ocr_engine": "tesseract"})
    assert resp.status_code == 422
    assert resp.json() == {"success": False, "error": "No image provided"}
    assert processor.calls == []


def test_wrong_type_is_rejected(client, processor):
    resp = client.post("/receipts/upload", files=_image(content_type="text/plain"))
    assert resp.status_code == 422
    assert resp.json()["success"] is False


def test_oversized_upload_is_rejected(client, processor, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 4)
    resp = client.post("/receipts/upload", files=_image(body=b"0123456789"))
    assert resp.status_code == 422
    assert resp.json() == {"success": False, "error": "File too large"}


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
