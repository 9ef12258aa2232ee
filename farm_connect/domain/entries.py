"""
Insert payload builders for the two ledgers.

These mirror what the entry forms submit: trimmed text, positive amounts and,
for goods, the final price computed once at creation time. Field-level UI
validation (phone formats, required-field messages) stays with the forms.
"""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from farm_connect.domain.models import Units, entry_final_price


def _stamp(created_at: Optional[datetime]) -> datetime:
    return created_at or datetime.now(timezone.utc)


class _Entry(BaseModel):
    model_config = {"frozen": True, "str_strip_whitespace": True}


class GoodsEntry(_Entry):
    farmer_name: str = Field(..., min_length=1)
    farmer_phone: str = Field(..., min_length=1)
    good_name: str = Field(..., min_length=1)
    quantity: Decimal = Field(..., gt=0)
    units: Units = Units.KG
    price_per_unit: Decimal = Field(..., gt=0)
    with_commission: bool = False

    @property
    def final_price(self) -> Decimal:
        return entry_final_price(self.quantity, self.price_per_unit, self.with_commission)

    def to_row(self, created_at: Optional[datetime] = None) -> Dict[str, Any]:
        return {
            "farmer_name": self.farmer_name,
            "farmer_phone": self.farmer_phone,
            "good_name": self.good_name,
            "quantity": self.quantity,
            "units": self.units.value,
            "price_per_unit": self.price_per_unit,
            "with_commission": self.with_commission,
            "final_price": self.final_price,
            "created_at": _stamp(created_at),
        }


class CustomerEntry(_Entry):
    customer_name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    goods_purchased: str = Field(..., min_length=1)
    price: Decimal = Field(..., gt=0)

    def to_row(self, created_at: Optional[datetime] = None) -> Dict[str, Any]:
        return {
            "customer_name": self.customer_name,
            "phone": self.phone,
            "address": self.address,
            "goods_purchased": self.goods_purchased,
            "price": self.price,
            "created_at": _stamp(created_at),
        }


__all__ = ["GoodsEntry", "CustomerEntry"]
