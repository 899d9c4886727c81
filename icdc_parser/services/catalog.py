"""
Master brand catalog: loading and exact-key matching of parsed products.
"""

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from icdc_parser.models.invoice import MasterBrandRecord, SkippedItem, ValidatedItem
from icdc_parser.utils.candidates import CandidateProduct
from icdc_parser.utils.sizes import format_size, size_to_ml

logger = logging.getLogger(__name__)

CatalogKey = Tuple[str, Optional[int], int, str]


class CatalogLoadError(Exception):
    """The master brand file is missing or malformed."""


def load_master_brands(path: Union[str, Path]) -> List[MasterBrandRecord]:
    """
    Read a JSON array of master brand records.

    Accepts the camelCase keys of the exported catalog
    (brandNumber, packQuantity, packType, sizeCode).
    """
    try:
        raw = json.loads(Path(path).read_text(encoding='utf-8'))
    except (OSError, json.JSONDecodeError) as e:
        raise CatalogLoadError(f"Cannot read master brands from {path}: {e}") from e

    if not isinstance(raw, list):
        raise CatalogLoadError(f"Master brands file {path} must contain a JSON array")

    try:
        return [MasterBrandRecord.model_validate(record) for record in raw]
    except ValidationError as e:
        raise CatalogLoadError(f"Invalid master brand record in {path}: {e}") from e


def _candidate_fields(product: CandidateProduct) -> Dict:
    fields = asdict(product)
    fields.pop('detector', None)
    return fields


def _describe(product: CandidateProduct, size_ml: Optional[int]) -> str:
    return f"{product.brand_number} {size_ml}ml {product.pack_type} {product.pack_qty}"


class CatalogMatcher:
    """
    Joins parsed products against the master brand catalog.

    A product matches only when brand number, size in ml, pack quantity
    and pack type are all identical. No fuzzy matching.
    """

    def __init__(self, master_brands: List[MasterBrandRecord]):
        self.master_brands = master_brands
        self._index: Dict[CatalogKey, MasterBrandRecord] = {}
        for brand in master_brands:
            # First record wins on duplicate keys
            self._index.setdefault(
                (brand.brand_number, brand.size, brand.pack_quantity, brand.pack_type),
                brand
            )

    def find(self, product: CandidateProduct) -> Optional[MasterBrandRecord]:
        key = (product.brand_number, size_to_ml(product.size), product.pack_qty, product.pack_type)
        return self._index.get(key)

    def match(
        self,
        products: List[CandidateProduct]
    ) -> Tuple[List[ValidatedItem], List[SkippedItem], List[str]]:
        """
        Partition products into validated and skipped items.

        Args:
            products: Deduplicated candidates in invoice order

        Returns:
            (validated items, skipped items, one warning per skipped item)
        """
        validated: List[ValidatedItem] = []
        skipped: List[SkippedItem] = []
        warnings: List[str] = []

        for product in products:
            size_ml = size_to_ml(product.size)
            brand = self.find(product)

            if brand:
                fields = _candidate_fields(product)
                fields.update(
                    description=brand.name,
                    size_code=brand.size_code or product.size_code,
                    pack_type=brand.pack_type,
                )
                validated.append(ValidatedItem(
                    **fields,
                    master_brand_id=brand.id,
                    mrp=brand.mrp,
                    category=brand.category,
                    formatted_size=format_size(brand.size_code or product.size_code, brand.size),
                ))
                logger.debug("Matched %s -> %s", _describe(product, size_ml), brand.name)
                continue

            product_key = _describe(product, size_ml)
            skipped.append(SkippedItem(
                **_candidate_fields(product),
                reason=f"No master brand found for {product_key}",
                suggestion=f"Add {product_key} to master brands first",
            ))
            warnings.append(f"Skipped: {product_key} - not in master brands")
            self._log_skip(product, product_key)

        return validated, skipped, warnings

    def _log_skip(self, product: CandidateProduct, product_key: str) -> None:
        variants = [b for b in self.master_brands if b.brand_number == product.brand_number]
        if not variants:
            logger.info("Skipped %s - brand not in master brands", product_key)
            return

        shown = ', '.join(
            f"{v.size}ml {v.pack_type} {v.pack_quantity} ({v.name})" for v in variants[:3]
        )
        more = f" and {len(variants) - 3} more" if len(variants) > 3 else ""
        logger.info("Skipped %s - available variants: %s%s", product_key, shown, more)
