"""
Catalog fixtures shared across test modules.
"""

from decimal import Decimal

import pytest

from icdc_parser.models.invoice import MasterBrandRecord


@pytest.fixture
def master_brands():
    return [
        MasterBrandRecord(
            id="mb-1",
            brand_number="5016",
            name="KINGFISHER PREMIUM LAGER BEER",
            size=650,
            size_code="BS",
            pack_quantity=12,
            pack_type="G",
            mrp=Decimal("180.00"),
            category="Beer",
        ),
        MasterBrandRecord(
            id="mb-2",
            brand_number="7031",
            name="MAGIC MOMENTS VODKA",
            size=180,
            size_code="NN",
            pack_quantity=48,
            pack_type="G",
            mrp=Decimal("250.00"),
            category="IML",
        ),
        MasterBrandRecord(
            id="mb-3",
            brand_number="5018",
            name="KINGFISHER ULTRA LAGER BEER",
            size=330,
            size_code="UP",
            pack_quantity=24,
            pack_type="C",
            mrp=Decimal("120.00"),
            category="Beer",
        ),
    ]


@pytest.fixture
def master_brands_json():
    """Catalog as exported, with camelCase keys."""
    return [
        {
            "id": "mb-1",
            "brandNumber": "5016",
            "name": "KINGFISHER PREMIUM LAGER BEER",
            "size": 650,
            "sizeCode": "BS",
            "packQuantity": 12,
            "packType": "G",
            "mrp": "180.00",
            "category": "Beer",
        },
        {
            "id": "mb-2",
            "brandNumber": "7031",
            "name": "MAGIC MOMENTS VODKA",
            "size": 180,
            "sizeCode": "NN",
            "packQuantity": 48,
            "packType": "G",
            "mrp": "250.00",
            "category": "IML",
        },
    ]
