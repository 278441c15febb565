from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from errors import ValidationError


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def parse_amount(value: str, *, allow_negative: bool = False) -> int:
    """Parse a user-entered amount ("1234.56", "1.234,56", "R$ 10") into cents."""
    clean = value.strip().replace("R$", "").replace("$", "").replace(" ", "")
    clean = clean.replace(",", ".")
    if clean.count(".") > 1:
        parts = clean.split(".")
        clean = "".join(parts[:-1]) + "." + parts[-1]
    try:
        amount = Decimal(clean)
    except InvalidOperation as exc:
        raise ValidationError("Invalid amount") from exc
    if not amount.is_finite():
        raise ValidationError("Invalid amount")
    cents = round_half_up(amount * 100)
    if cents < 0 and not allow_negative:
        raise ValidationError("Amount must be positive")
    return cents


def split_amount(total_cents: int, count: int) -> list[int]:
    """Split ``total_cents`` into ``count`` installments.

    Each installment is ``total / count`` rounded half-up to the cent. The
    rounding drift is absorbed by the last installment so that the parts always
    add up to the total exactly. When rounding up would leave the last
    installment empty, the per-installment amount is rounded down instead.
    """
    if count < 1:
        raise ValidationError("Installment count must be at least 1")
    if total_cents <= 0:
        raise ValidationError("Amount must be greater than zero")
    if total_cents < count:
        raise ValidationError(
            f"Amount too small to split into {count} installments"
        )
    per = round_half_up(Decimal(total_cents) / Decimal(count))
    if total_cents - per * (count - 1) <= 0:
        per = total_cents // count
    last = total_cents - per * (count - 1)
    return [per] * (count - 1) + [last]
