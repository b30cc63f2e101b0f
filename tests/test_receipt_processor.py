import datetime as dt
from decimal import Decimal

from receiptscan.models.enums import RecognitionBackendId
from receiptscan.models.schemas import RecognitionConfig, RecognitionRequest, RecognitionResult
from receiptscan.services.field_extractor import FieldExtractor
from receiptscan.services.receipt_processor import ReceiptProcessor


REQUEST = RecognitionRequest(content=b"img")


class StubRecognizer:
    def __init__(self, result: RecognitionResult) -> None:
        self.result = result
        self.configs = []

    def recognize(self, request, config=None):
        self.configs.append(config)
        return self.result


def test_process_extracts_from_recognised_text(today):
    recognizer = StubRecognizer(
        RecognitionResult(text="BLUE BOTTLE CAFE\n03/02/2024\nTotal: $8.75", backend=RecognitionBackendId.GOOGLE_VISION)
    )
    processor = ReceiptProcessor(recognizer=recognizer, extractor=FieldExtractor(today=today))
    config = RecognitionConfig(preferred_backend=RecognitionBackendId.GOOGLE_VISION)

    outcome = processor.process(REQUEST, config)

    assert recognizer.configs == [config]
    assert outcome.ocr_engine is RecognitionBackendId.GOOGLE_VISION
    assert outcome.extracted.amount == Decimal("8.75")
    assert outcome.extracted.merchant == "Blue Bottle Cafe"
    assert outcome.extracted.date == dt.date(2024, 3, 2)
    data = outcome.as_extracted_data()
    assert data["amount"] == "8.75"
    assert data["date"] == "2024-03-02"
    assert data["category"] == "Food"
    assert data["ocr_engine"] == "google_vision"


def test_process_without_text_returns_empty_record(today):
    processor = ReceiptProcessor(recognizer=StubRecognizer(RecognitionResult()), extractor=FieldExtractor(today=today))
    outcome = processor.process(REQUEST)
    assert outcome.ocr_engine is None
    assert outcome.as_extracted_data() == {"currency": "USD", "ocr_engine": None}
