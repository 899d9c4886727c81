"""
Candidate dataclasses for invoice extraction.

Each candidate represents a value recovered from the invoice text
together with the metadata needed to deduplicate, reconcile and
report on it.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional
import re

from .sizes import map_size_to_code

# Products without a serial sort after every numbered line
SERIAL_SENTINEL = 999


@dataclass
class CandidateProduct:
    """
    One product line recovered by a format detector.

    Unique per (brand_number, size) within a single parse; see dedup_key.
    """
    brand_number: str
    description: str
    size: str  # "650ml"
    size_code: str
    cases: int
    bottles: int
    total_quantity: int
    pack_qty: int
    product_type: str
    pack_type: str
    serial: Optional[int] = None
    detector: str = ""

    @property
    def dedup_key(self) -> str:
        return dedup_key(self.brand_number, self.size)

    @property
    def sort_key(self) -> int:
        return self.serial if self.serial else SERIAL_SENTINEL


@dataclass
class AmountCandidate:
    """
    A monetary figure found anywhere in the document.

    line_index drives the positional rules of the reconciler
    (cess and TCS must follow the turnover tax).
    """
    value: Decimal
    line_index: int
    match_span: tuple[int, int]  # (start, end) within the line
    raw_text: str = ""
    pattern_name: str = ""
    is_round: bool = False  # ends in .00


@dataclass
class Combination:
    """A tentative field assignment scored against known relationships."""
    invoice_value: AmountCandidate
    mrp_rounding_off: Optional[AmountCandidate] = None
    net_invoice_value: Optional[AmountCandidate] = None
    retail_excise_turnover_tax: Optional[AmountCandidate] = None
    special_excise_cess: Optional[AmountCandidate] = None
    tcs: Optional[AmountCandidate] = None
    score: int = 0
    relationships: list[str] = field(default_factory=list)


def dedup_key(brand_number: str, size: str) -> str:
    """Key shared by all detectors: brand number + size."""
    return f"{brand_number}_{size}"


def clean_description(name: str) -> str:
    """Drop bracketed pack sizes like "(48)" from a product name."""
    return re.sub(r'\s*\(\d+\)\s*', ' ', name).strip()


def create_candidate_product(
    serial: str,
    brand_number: str,
    description: str,
    size_ml: str,
    cases: int,
    bottles: int,
    pack_qty: int,
    product_type: str,
    pack_type: str,
    detector: str
) -> CandidateProduct:
    """
    Build a CandidateProduct with derived size code and total quantity.

    Args:
        serial: Line-item number as printed
        brand_number: 4-digit brand code
        description: Raw product name (cleaned here)
        size_ml: Bottle size digits, e.g. "650"
        cases: Full cases
        bottles: Loose bottles
        pack_qty: Bottles per case
        product_type: "Beer", "IML" or "Duty Paid"
        pack_type: "G", "C" or "P"
        detector: Name of the detector that recognised the line

    Returns:
        CandidateProduct ready for catalog matching
    """
    size = f"{size_ml}ml"
    name = clean_description(description) or f"Product {brand_number}"

    return CandidateProduct(
        brand_number=brand_number,
        description=name,
        size=size,
        size_code=map_size_to_code(size),
        cases=cases,
        bottles=bottles,
        total_quantity=cases * pack_qty + bottles,
        pack_qty=pack_qty,
        product_type=normalize_product_type(product_type),
        pack_type=pack_type,
        serial=int(serial) if serial and serial.isdigit() else None,
        detector=detector,
    )


def normalize_product_type(product_type: str) -> str:
    """"Duty  Paid" / "DutyPaid" → "Duty Paid"."""
    if product_type.lower().startswith('duty'):
        return 'Duty Paid'
    return product_type
