"""
Conversion arithmetic and fee schedules.

Fees are a percentage of the converted amount:

    none 0%   bank 3%   paypal 4%   wise 0.5%   western_union 5%

Unknown fee types are charged 0% rather than rejected. All values are
returned at full float precision; rounding is a presentation concern.
"""

import enum
import re
from dataclasses import dataclass

_CURRENCY_CODE_RE = re.compile(r"^[A-Z]{3}$")


class FeeType(str, enum.Enum):
    NONE = "none"
    BANK = "bank"
    PAYPAL = "paypal"
    WISE = "wise"
    WESTERN_UNION = "western_union"


FEE_SCHEDULE: dict[FeeType, float] = {
    FeeType.NONE: 0,
    FeeType.BANK: 3,
    FeeType.PAYPAL: 4,
    FeeType.WISE: 0.5,
    FeeType.WESTERN_UNION: 5,
}


class InvalidAmountError(ValueError):
    """Raised when a conversion amount is not strictly positive."""


class InvalidCurrencyPairError(ValueError):
    """Raised for malformed currency codes or a pair that must differ but doesn't."""


@dataclass(frozen=True)
class ConversionResult:
    amount: float
    rate: float
    fee_type: str
    fee_percent: float
    converted_amount: float
    fee_amount: float
    final_amount: float


def fee_percent(fee_type: str | None) -> float:
    """Percentage for *fee_type*; 0 for missing or unrecognised types."""
    try:
        return FEE_SCHEDULE[FeeType(fee_type)]
    except ValueError:
        return 0


def convert(amount: float, rate: float, fee_type: str = FeeType.NONE.value) -> ConversionResult:
    """
    Convert *amount* at *rate* and apply the fee schedule.

    Raises InvalidAmountError when amount <= 0 and ValueError when rate <= 0.
    """
    if amount is None or amount <= 0:
        raise InvalidAmountError("Amount must be greater than 0")
    if rate is None or rate <= 0:
        raise ValueError("Rate must be greater than 0")

    pct = fee_percent(fee_type)
    converted = amount * rate
    fee = converted * pct / 100
    return ConversionResult(
        amount=amount,
        rate=rate,
        fee_type=fee_type,
        fee_percent=pct,
        converted_amount=converted,
        fee_amount=fee,
        final_amount=converted - fee,
    )


def normalize_currency(code: str) -> str:
    normalized = (code or "").strip().upper()
    if not _CURRENCY_CODE_RE.match(normalized):
        raise InvalidCurrencyPairError(f"Invalid currency code: {code!r}")
    return normalized


def normalize_pair(
    from_currency: str, to_currency: str, *, require_distinct: bool = False,
) -> tuple[str, str]:
    """Upper-case and validate a pair of 3-letter codes."""
    src = normalize_currency(from_currency)
    tgt = normalize_currency(to_currency)
    if require_distinct and src == tgt:
        raise InvalidCurrencyPairError("From and To currencies cannot be the same")
    return src, tgt
