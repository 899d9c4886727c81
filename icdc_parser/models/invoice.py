"""
Pydantic models for parsed ICDC invoices.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any, Union
from decimal import Decimal
from enum import Enum


class ProductType(str, Enum):
    """Product category printed on each invoice line."""
    BEER = "Beer"
    IML = "IML"
    DUTY_PAID = "Duty Paid"


class PackType(str, Enum):
    """Single-letter packaging code."""
    GLASS = "G"
    CARTON = "C"
    PLASTIC = "P"


class MasterBrandRecord(BaseModel):
    """Catalog entry keyed by (brand_number, size, pack_quantity, pack_type)."""
    id: Optional[Union[int, str]] = None  # numeric in exported catalogs
    brand_number: str = Field(alias="brandNumber")
    name: str
    size: int  # ml
    size_code: Optional[str] = Field(default=None, alias="sizeCode")
    pack_quantity: int = Field(alias="packQuantity")
    pack_type: str = Field(alias="packType")
    mrp: Optional[Decimal] = None
    category: Optional[str] = None

    class Config:
        populate_by_name = True


class InvoiceItemBase(BaseModel):
    """Fields shared by validated and skipped line items."""
    brand_number: str
    description: str
    size: str  # e.g. "650ml"
    size_code: str
    cases: int = 0
    bottles: int = 0
    total_quantity: int = 0
    pack_qty: int
    product_type: ProductType
    pack_type: PackType
    serial: Optional[int] = None


class ValidatedItem(InvoiceItemBase):
    """Line item joined with its master brand record."""
    master_brand_id: Optional[Union[int, str]] = None
    mrp: Optional[Decimal] = None
    category: Optional[str] = None
    formatted_size: str
    matched: bool = True
    confidence: str = "high"


class SkippedItem(InvoiceItemBase):
    """Line item with no catalog match."""
    reason: str
    suggestion: str


class FinancialSummary(BaseModel):
    """Monetary totals recovered from the invoice footer."""
    invoice_value: Decimal = Decimal("0.00")
    mrp_rounding_off: Decimal = Decimal("0.00")
    net_invoice_value: Decimal = Decimal("0.00")
    retail_shop_excise_tax: Decimal = Decimal("0.00")
    retail_excise_turnover_tax: Decimal = Decimal("0.00")
    special_excise_cess: Decimal = Decimal("0.00")
    tcs: Decimal = Decimal("0.00")
    total_amount: Decimal = Decimal("0.00")


class ParseSummary(BaseModel):
    """Counters over the parsed line items."""
    total_items_parsed: int = 0
    validated_items: int = 0
    skipped_items: int = 0
    total_quantity: int = 0
    match_rate: float = 0.0


class ParseResult(BaseModel):
    """Outcome of one invoice parse. Always returned, never raised."""
    success: bool
    confidence: float = 0.0
    method: Optional[str] = None
    invoice_number: Optional[str] = None
    invoice_date: Optional[str] = None  # YYYY-MM-DD
    financials: FinancialSummary = Field(default_factory=FinancialSummary)
    items: List[ValidatedItem] = Field(default_factory=list)
    skipped_items: List[SkippedItem] = Field(default_factory=list)
    summary: ParseSummary = Field(default_factory=ParseSummary)
    warnings: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    debug: Dict[str, Any] = Field(default_factory=dict)


class ParseRequest(BaseModel):
    """Request body for parsing already-extracted invoice text."""
    text: str
    master_brands: Optional[List[MasterBrandRecord]] = None
