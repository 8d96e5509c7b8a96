"""
Pydantic schemas for currency conversion requests and results.
"""

from datetime import datetime

from pydantic import Field

from app.schemas.base import CamelModel


class ConvertRequest(CamelModel):
    """Conversion request; amount is validated by the calculator, not here."""
    from_currency: str = Field(..., examples=["USD"])
    to_currency: str = Field(..., examples=["INR"])
    amount: float = Field(..., examples=[100])
    fee_type: str = Field("none", examples=["wise"])
    save_history: bool = True


class ConvertResponse(CamelModel):
    """Conversion result; monetary amounts rounded to 2 decimals for display."""
    from_currency: str
    to_currency: str
    amount: float
    rate: float
    source: str
    converted_amount: float
    fee_type: str
    fee_percentage: float
    fee_amount: float
    final_amount: float
    timestamp: datetime
    warning: str | None = None
