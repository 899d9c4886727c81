"""
API endpoint tests using FastAPI's TestClient.
"""

import json
from decimal import Decimal
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from icdc_parser.config import settings
from icdc_parser.main import app

from .samples import FULL_INVOICE

client = TestClient(app)


def test_root():
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "running"


def test_health():
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


class TestParseEndpoint:

    def test_parse_with_inline_catalog(self, master_brands_json):
        response = client.post("/invoices/parse", json={
            "text": FULL_INVOICE,
            "master_brands": master_brands_json,
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["summary"]["validated_items"] == 2
        assert data["summary"]["skipped_items"] == 1
        assert Decimal(str(data["financials"]["tcs"])) == Decimal("15162.00")

    def test_inline_catalog_with_integer_ids(self, master_brands_json):
        for index, record in enumerate(master_brands_json, start=1):
            record["id"] = index

        response = client.post("/invoices/parse", json={
            "text": FULL_INVOICE,
            "master_brands": master_brands_json,
        })

        assert response.status_code == 200
        assert [item["master_brand_id"] for item in response.json()["items"]] == [1, 2]

    def test_parse_with_configured_catalog(self, tmp_path, monkeypatch, master_brands_json):
        path = tmp_path / "masterBrands.json"
        path.write_text(json.dumps(master_brands_json))
        monkeypatch.setattr(settings, "MASTER_BRANDS_PATH", str(path))

        response = client.post("/invoices/parse", json={"text": FULL_INVOICE})

        assert response.status_code == 200
        assert response.json()["summary"]["validated_items"] == 2

    def test_missing_configured_catalog_is_server_error(self, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "MASTER_BRANDS_PATH", str(tmp_path / "missing.json"))

        response = client.post("/invoices/parse", json={"text": FULL_INVOICE})

        assert response.status_code == 500

    def test_no_products_returns_failure_body(self, master_brands_json):
        response = client.post("/invoices/parse", json={
            "text": "nothing useful",
            "master_brands": master_brands_json,
        })

        assert response.status_code == 200
        assert response.json()["success"] is False
        assert response.json()["error"] == "No products found in invoice"


class TestUploadEndpoint:

    @pytest.fixture
    def extractor(self):
        with patch("icdc_parser.routers.invoices.TextExtractionService") as service:
            yield service.return_value

    def test_upload_pdf(self, extractor, master_brands_json):
        extractor.extract_text_from_pdf.return_value = FULL_INVOICE

        response = client.post(
            "/invoices/upload",
            files={"file": ("invoice.pdf", b"%PDF-1.4 fake", "application/pdf")},
            data={"master_brands": json.dumps(master_brands_json)},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["invoice_number"] == "ICDC050625012345"
        extractor.extract_text_from_pdf.assert_called_once_with(b"%PDF-1.4 fake")

    def test_rejects_non_pdf(self, extractor):
        response = client.post(
            "/invoices/upload",
            files={"file": ("invoice.png", b"png", "image/png")},
        )

        assert response.status_code == 400
        extractor.extract_text_from_pdf.assert_not_called()

    def test_rejects_oversized_file(self, extractor, monkeypatch):
        monkeypatch.setattr(settings, "MAX_UPLOAD_MB", 0)

        response = client.post(
            "/invoices/upload",
            files={"file": ("invoice.pdf", b"%PDF-1.4 fake", "application/pdf")},
        )

        assert response.status_code == 400
        assert "too large" in response.json()["detail"]

    def test_invalid_catalog_field(self, extractor):
        response = client.post(
            "/invoices/upload",
            files={"file": ("invoice.pdf", b"%PDF-1.4 fake", "application/pdf")},
            data={"master_brands": "{not json"},
        )

        assert response.status_code == 400

    def test_unreadable_pdf(self, extractor, master_brands_json):
        extractor.extract_text_from_pdf.return_value = ""

        response = client.post(
            "/invoices/upload",
            files={"file": ("invoice.pdf", b"%PDF-1.4 fake", "application/pdf")},
            data={"master_brands": json.dumps(master_brands_json)},
        )

        assert response.status_code == 400
        assert "No text" in response.json()["detail"]
