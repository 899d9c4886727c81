"""
Relationship scoring for unlabelled financial amounts.

Some invoice prints lose every label in the financial summary, leaving a
column of bare numbers. The six totals are still tied together by
arithmetic, so each amount is tried as the invoice value and the rest are
searched for figures that fit around it:

- Net Invoice Value ≈ Invoice Value + MRP Rounding Off   (+2)
- Retail Excise Turnover Tax ≈ 10% of Invoice Value       (+1)
- Special Excise Cess: first amount over 1 lakh printed
  after the turnover tax                                   (+1)
- TCS: first smaller amount printed after the cess         (+1)

The highest-scoring combination wins if it reaches MIN_RELATIONSHIP_SCORE.
"""

from decimal import Decimal
from typing import Dict, List, Optional
import logging

from .candidates import AmountCandidate, Combination

__all__ = [
    'NET_VALUE_TOLERANCE', 'TURNOVER_TAX_RATE', 'TURNOVER_TOLERANCE',
    'MIN_RELATIONSHIP_SCORE', 'INVOICE_CANDIDATES',
    'rank_amounts', 'score_combination', 'select_best_combination', 'fallback_assignment',
]

logger = logging.getLogger(__name__)

# Net = Invoice + MRP must hold within 1%
NET_VALUE_TOLERANCE = Decimal("0.01")

# Turnover tax is 10% of the invoice value, within 15% of that figure
TURNOVER_TAX_RATE = Decimal("0.10")
TURNOVER_TOLERANCE = Decimal("0.15")

MIN_RELATIONSHIP_SCORE = 3

# Only the largest few amounts are tried as the invoice value
INVOICE_CANDIDATES = 5

# Window for cess/TCS candidates
POSITIONAL_MIN = Decimal("1000")
POSITIONAL_MAX = Decimal("10000000")
CESS_THRESHOLD = Decimal("100000")


def rank_amounts(amounts: List[AmountCandidate]) -> List[AmountCandidate]:
    """Largest first. Equal values keep document order."""
    return sorted(amounts, key=lambda a: a.value, reverse=True)


def score_combination(invoice: AmountCandidate, ranked: List[AmountCandidate]) -> Combination:
    """
    Build the best field assignment around one invoice-value candidate.

    Args:
        invoice: Amount assumed to be the Invoice Value
        ranked: All amounts, largest first

    Returns:
        Combination with whatever fields could be placed and its score
    """
    combo = Combination(invoice_value=invoice)
    invoice_amount = invoice.value

    # Net = Invoice + MRP
    for mrp in ranked:
        if mrp.value == invoice_amount:
            continue

        for net in ranked:
            if net.value == invoice_amount or net.value == mrp.value:
                continue

            expected_net = invoice_amount + mrp.value
            if abs(net.value - expected_net) <= expected_net * NET_VALUE_TOLERANCE:
                combo.mrp_rounding_off = mrp
                combo.net_invoice_value = net
                combo.score += 2
                combo.relationships.append('net_equals_invoice_plus_mrp')
                break

        if combo.net_invoice_value:
            break

    used = {invoice_amount}
    if combo.mrp_rounding_off:
        used.add(combo.mrp_rounding_off.value)
        used.add(combo.net_invoice_value.value)

    # Turnover tax ≈ 10% of invoice
    expected_turnover = invoice_amount * TURNOVER_TAX_RATE
    turnover_tolerance = expected_turnover * TURNOVER_TOLERANCE

    turnover = next(
        (
            a for a in ranked
            if a.value not in used and abs(a.value - expected_turnover) <= turnover_tolerance
        ),
        None
    )
    if turnover:
        combo.retail_excise_turnover_tax = turnover
        combo.score += 1
        combo.relationships.append('turnover_is_ten_percent')
        used.add(turnover.value)

    # Cess and TCS follow the turnover tax in print order
    remaining = sorted(
        (
            a for a in ranked
            if a.value not in used
            and POSITIONAL_MIN < a.value < POSITIONAL_MAX
            and (turnover is None or a.line_index > turnover.line_index)
        ),
        key=lambda a: a.line_index
    )

    cess = next((a for a in remaining if a.value > CESS_THRESHOLD), None)
    if cess:
        combo.special_excise_cess = cess
        combo.score += 1
        combo.relationships.append('cess_after_turnover')
        used.add(cess.value)

    tcs = next(
        (
            a for a in remaining
            if a.value not in used
            and a.value < CESS_THRESHOLD
            and (cess is None or a.line_index > cess.line_index)
        ),
        None
    )
    if tcs:
        combo.tcs = tcs
        combo.score += 1
        combo.relationships.append('tcs_after_cess')

    logger.debug("Invoice candidate %s scored %d %s", invoice_amount, combo.score, combo.relationships)
    return combo


def select_best_combination(amounts: List[AmountCandidate]) -> Optional[Combination]:
    """
    Try the largest amounts as invoice value and keep the best-scoring fit.

    Earlier (larger) candidates win ties.

    Returns:
        Combination scoring at least MIN_RELATIONSHIP_SCORE, else None
    """
    ranked = rank_amounts(amounts)

    best: Optional[Combination] = None
    best_score = 0

    for invoice in ranked[:INVOICE_CANDIDATES]:
        combo = score_combination(invoice, ranked)
        if combo.score > best_score:
            best = combo
            best_score = combo.score

    if best is None or best_score < MIN_RELATIONSHIP_SCORE:
        logger.debug("No combination reached score %d (best %d)", MIN_RELATIONSHIP_SCORE, best_score)
        return None

    return best


def fallback_assignment(amounts: List[AmountCandidate]) -> Dict[str, AmountCandidate]:
    """
    Shape-based guess used when no combination scores high enough.

    The largest large-shaped amount becomes the invoice value and the
    largest round (.00) large-shaped amount becomes the special excise cess.
    """
    ranked = rank_amounts(amounts)
    large = [a for a in ranked if a.pattern_name == 'large_amount']
    assignment = {}

    if large:
        assignment['invoice_value'] = large[0]

    round_amounts = [a for a in large if a.is_round]
    if round_amounts:
        assignment['special_excise_cess'] = round_amounts[0]

    return assignment
