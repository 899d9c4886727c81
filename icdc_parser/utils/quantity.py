"""
Cases/bottles disambiguation for concatenated quantity numerals.

Some invoice printers run the cases and bottles columns together, so
"423" may mean 4 cases + 23 bottles or 42 cases + 3 bottles. The pack
quantity (bottles per case) bounds the bottles component and is used
to choose between the candidate splits.

The rules are lossy by construction: "3300" always reads as 330 cases,
never 33 cases + 00 bottles.
"""

from typing import Tuple
import logging

logger = logging.getLogger(__name__)


def _choose_split(
    digits: str,
    first: Tuple[int, int],
    second: Tuple[int, int],
    pack_qty: int
) -> Tuple[int, int]:
    """
    Pick between two (cases, bottles) readings of the same numeral.

    A reading whose bottles exceed the pack quantity is rejected. When
    both survive, the one whose bottles are closest to the pack quantity
    wins; ties go to the first reading.
    """
    first_bottles = first[1]
    second_bottles = second[1]

    if first_bottles > pack_qty:
        choice, why = second, f"{first_bottles} > {pack_qty}"
    elif second_bottles > pack_qty:
        choice, why = first, f"{second_bottles} > {pack_qty}"
    elif abs(pack_qty - first_bottles) <= abs(pack_qty - second_bottles):
        choice, why = first, f"{first_bottles} closer to {pack_qty} than {second_bottles}"
    else:
        choice, why = second, f"{second_bottles} closer to {pack_qty} than {first_bottles}"

    logger.debug("Split %r -> %dc %db (%s)", digits, choice[0], choice[1], why)
    return choice


def split_cases_bottles(digits: str, pack_qty: int) -> Tuple[int, int]:
    """
    Split a concatenated cases+bottles numeral.

    Args:
        digits: Digit string as printed, e.g. "1000", "423"
        pack_qty: Bottles per case for the line

    Returns:
        (cases, bottles)

    Examples:
        >>> split_cases_bottles("50", 12)
        (5, 0)
        >>> split_cases_bottles("423", 12)
        (42, 3)
        >>> split_cases_bottles("3300", 12)
        (330, 0)
    """
    length = len(digits)

    if length < 2:
        return int(digits or 0), 0

    if length == 2:
        return int(digits[0]), int(digits[1])

    if length == 3:
        if digits.endswith('0'):
            return int(digits[:2]), 0
        return _choose_split(
            digits,
            (int(digits[:1]), int(digits[1:])),
            (int(digits[:2]), int(digits[2:])),
            pack_qty,
        )

    if length == 4:
        if digits.endswith('00'):
            return int(digits[:3]), 0
        return _choose_split(
            digits,
            (int(digits[:2]), int(digits[2:])),
            (int(digits[:3]), int(digits[3:])),
            pack_qty,
        )

    # Longer numerals: last two digits are bottles
    return int(digits[:-2]), int(digits[-2:])
