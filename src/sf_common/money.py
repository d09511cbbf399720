"""Money utilities.

The API carries money as a decimal string with two places ("25.90").
Arithmetic goes through Decimal, never float.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

_TWO_PLACES = Decimal("0.01")


def parse_money(value: str | int | Decimal) -> Decimal:
    """Parse a money string into a Decimal quantized to cents."""
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Invalid money value: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Invalid money value: {value!r}")
    return amount.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def format_money(amount: Decimal | int | str) -> str:
    """Format an amount as the API money string: Decimal('25.9') -> '25.90'."""
    return str(parse_money(amount))


def validate_price(value: str) -> str:
    """Validate a product price is a positive money string and normalize it."""
    amount = parse_money(value)
    if amount <= 0:
        raise ValueError(f"Price must be greater than zero, got {value}")
    return format_money(amount)


def money_to_display(amount: Decimal | str) -> str:
    """Display string in BRL: Decimal('1234.5') -> 'R$ 1.234,50'."""
    value = parse_money(amount)
    sign = "-" if value < 0 else ""
    whole, _, cents = f"{abs(value):,.2f}".partition(".")
    return f"{sign}R$ {whole.replace(',', '.')},{cents}"
