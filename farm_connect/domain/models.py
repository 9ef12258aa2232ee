"""
Domain models for Farm Connect.

Defines the two ledger record kinds aligned with `db/init.sql`: goods collected
from farmers (`farmers_goods`) and sales to customers (`customers`). Records
are frozen once loaded; the reporting core only ever reads them.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator

from farm_connect.errors import UnknownLedgerError

COMMISSION_RATE = Decimal("0.10")

GOODS_TABLE = "farmers_goods"
CUSTOMERS_TABLE = "customers"


class Units(str, Enum):
    KG = "Kg"
    BOX = "Box"
    BAGS = "Bags"


class LedgerKind(str, Enum):
    GOODS = "goods"
    CUSTOMERS = "customers"

    @property
    def table(self) -> str:
        return GOODS_TABLE if self is LedgerKind.GOODS else CUSTOMERS_TABLE

    @classmethod
    def parse(cls, value: Union[str, "LedgerKind"]) -> "LedgerKind":
        """Accept the enum, its value, or the UI tab aliases ("farmers")."""
        if isinstance(value, LedgerKind):
            return value
        aliases = {"farmers": cls.GOODS, GOODS_TABLE: cls.GOODS}
        normalized = str(value).strip().lower()
        if normalized in aliases:
            return aliases[normalized]
        try:
            return cls(normalized)
        except ValueError:
            raise UnknownLedgerError(
                f"Unknown ledger '{value}'. Available: {', '.join(k.value for k in cls)}"
            ) from None


class CommissionFilter(str, Enum):
    ALL = "all"
    WITH = "with"
    WITHOUT = "without"


def amount_or_zero(value: Optional[Decimal]) -> Decimal:
    """Missing numeric fields count as zero in reports."""
    return value if value is not None else Decimal("0")


def format_number(value: Decimal) -> str:
    """Plain decimal text without trailing zeros: 45.00 -> "45", 2.50 -> "2.5"."""
    if value == value.to_integral_value():
        return str(int(value))
    return format(value.normalize(), "f")


def entry_final_price(
    quantity: Optional[Decimal], price_per_unit: Optional[Decimal], with_commission: bool
) -> Decimal:
    """
    Final price as computed when a goods record is entered.

    quantity × price_per_unit, reduced by the commission rate when flagged.
    """
    total = amount_or_zero(quantity) * amount_or_zero(price_per_unit)
    if with_commission:
        return total * (Decimal("1") - COMMISSION_RATE)
    return total


class LedgerRecord(BaseModel):
    """
    Fields shared by both ledgers.

    `search_fields` lists the text attributes the free-text filter inspects.
    """

    kind: ClassVar[LedgerKind]
    search_fields: ClassVar[Tuple[str, ...]] = ()

    id: Optional[str] = Field(None, description="Store-assigned identifier.")
    created_at: datetime = Field(..., description="Creation timestamp, set once.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "extra": "ignore",
    }

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        return str(value)

    def search_values(self) -> Tuple[str, ...]:
        values = []
        for name in self.search_fields:
            value = getattr(self, name, None)
            if value is None:
                continue
            values.append(value.value if isinstance(value, Enum) else str(value))
        return tuple(values)


def _blank_text(value: Any) -> Any:
    return "" if value is None else value


def _blank_number(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class GoodsRecord(LedgerRecord):
    """
    Goods collected from a farmer (`farmers_goods` row).

    `final_price` is persisted at entry time and trusted verbatim for revenue
    and receipts; commission amounts are always recomputed from the inputs.
    """

    kind: ClassVar[LedgerKind] = LedgerKind.GOODS
    search_fields: ClassVar[Tuple[str, ...]] = ("farmer_name", "farmer_phone", "good_name", "units")

    farmer_name: str = ""
    farmer_phone: str = ""
    good_name: str = ""
    quantity: Optional[Decimal] = None
    units: Units = Units.KG
    price_per_unit: Optional[Decimal] = None
    with_commission: bool = False
    final_price: Optional[Decimal] = None

    @field_validator("farmer_name", "farmer_phone", "good_name", mode="before")
    @classmethod
    def _text_or_blank(cls, value: Any) -> Any:
        return _blank_text(value)

    @field_validator("quantity", "price_per_unit", "final_price", mode="before")
    @classmethod
    def _number_or_missing(cls, value: Any) -> Any:
        return _blank_number(value)

    @property
    def person_name(self) -> str:
        return self.farmer_name


class CustomerRecord(LedgerRecord):
    """A sale to a customer (`customers` row); `price` is entered directly."""

    kind: ClassVar[LedgerKind] = LedgerKind.CUSTOMERS
    search_fields: ClassVar[Tuple[str, ...]] = ("customer_name", "phone", "goods_purchased")

    customer_name: str = ""
    phone: str = ""
    address: str = ""
    goods_purchased: str = ""
    price: Optional[Decimal] = None

    @field_validator("customer_name", "phone", "address", "goods_purchased", mode="before")
    @classmethod
    def _text_or_blank(cls, value: Any) -> Any:
        return _blank_text(value)

    @field_validator("price", mode="before")
    @classmethod
    def _number_or_missing(cls, value: Any) -> Any:
        return _blank_number(value)

    @property
    def person_name(self) -> str:
        return self.customer_name


class Snapshot(BaseModel):
    """Both ledgers as fetched once; replaced wholesale on refresh."""

    goods: Tuple[GoodsRecord, ...] = ()
    customers: Tuple[CustomerRecord, ...] = ()
    fetched_at: datetime

    model_config = {"frozen": True}

    def ledger(self, kind: Union[str, LedgerKind]) -> Tuple[LedgerRecord, ...]:
        kind = LedgerKind.parse(kind)
        return self.goods if kind is LedgerKind.GOODS else self.customers


def record_model(kind: Union[str, LedgerKind]) -> type[LedgerRecord]:
    return GoodsRecord if LedgerKind.parse(kind) is LedgerKind.GOODS else CustomerRecord


__all__ = [
    "COMMISSION_RATE",
    "GOODS_TABLE",
    "CUSTOMERS_TABLE",
    "Units",
    "LedgerKind",
    "CommissionFilter",
    "LedgerRecord",
    "GoodsRecord",
    "CustomerRecord",
    "Snapshot",
    "amount_or_zero",
    "entry_final_price",
    "format_number",
    "record_model",
]
