"""Receipt OCR and structured field extraction.

This package turns a photographed or scanned receipt into pre-filled
transaction fields.  It is organised in the same layers as the rest of
the backend:

* ``receiptscan.services`` – recognition backends, the orchestrator that
  chooses between them, the field extractor and the pipeline tying the
  two together.
* ``receiptscan.models`` – Pydantic schemas and enumerations shared by
  every layer.
* ``receiptscan.api`` – a thin FastAPI surface for uploads.

To run the API locally you can execute:

```bash
uvicorn receiptscan.api.main:app --reload
```

Configuration values are read from environment variables or a ``.env``
file at the project root (see ``receiptscan.core.config``).
"""

__all__: list[str] = []
