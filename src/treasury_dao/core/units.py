"""
Conversion between whole units and base units.

All balances, token amounts and quorum thresholds are stored as integers in
base units. Humans read and type whole units (``100`` means 100 * 10**18).
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext

DEFAULT_DECIMALS = 18


def parse_units(value: int | str | Decimal, decimals: int = DEFAULT_DECIMALS) -> int:
    """
    Convert a whole-unit amount into base units.

    Args:
        value: Whole-unit amount, e.g. ``100``, ``"0.5"`` or ``Decimal("2")``
        decimals: Number of decimals of the unit

    Returns:
        Amount in base units

    Raises:
        ValueError: If the value is negative, malformed, or has more
            fractional digits than the unit supports
    """
    if isinstance(value, bool):
        raise ValueError("Amount must be a number, not a boolean")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {value!r}") from exc

    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    if amount < 0:
        raise ValueError("Amount cannot be negative")

    with localcontext() as ctx:
        ctx.prec = 96
        scaled = amount.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Amount {value!r} has more than {decimals} decimal places")
    return int(scaled)


def format_units(amount: int, decimals: int = DEFAULT_DECIMALS) -> str:
    """
    Render a base-unit amount as a whole-unit decimal string.

    >>> format_units(100 * 10**18)
    '100.0'
    >>> format_units(5 * 10**17)
    '0.5'
    """
    whole, fraction = divmod(int(amount), 10**decimals)
    if fraction == 0:
        return f"{whole}.0"
    digits = str(fraction).rjust(decimals, "0").rstrip("0")
    return f"{whole}.{digits}"


def parse_ether(value: int | str | Decimal) -> int:
    return parse_units(value, DEFAULT_DECIMALS)
