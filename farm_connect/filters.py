"""
Filter engine for ledger views.

`filter_records` applies the current view parameters (free-text search, a
calendar day, and for goods a commission flag) to a record collection. All
supplied criteria are combined with AND; the input collection is never
mutated and its order is preserved.
"""

from __future__ import annotations

from datetime import date, tzinfo
from typing import Callable, List, Optional, Sequence, TypeVar

from pydantic import BaseModel, field_validator

from farm_connect.domain.dates import display_zone, local_date
from farm_connect.domain.models import CommissionFilter, GoodsRecord, LedgerRecord
from farm_connect.utils.logging import get_logger

log = get_logger(__name__)

R = TypeVar("R", bound=LedgerRecord)
Predicate = Callable[[LedgerRecord], bool]

_COMMISSION_ALIASES = {
    "show-all": CommissionFilter.ALL,
    "with-commission-only": CommissionFilter.WITH,
    "without-commission-only": CommissionFilter.WITHOUT,
}


class FilterCriteria(BaseModel):
    """
    Current view parameters.

    Every field is optional; an empty `FilterCriteria()` matches everything.
    """

    search_text: Optional[str] = None
    exact_date: Optional[date] = None
    commission: CommissionFilter = CommissionFilter.ALL

    model_config = {"frozen": True}

    @field_validator("commission", mode="before")
    @classmethod
    def _parse_commission(cls, value: object) -> object:
        if value in (None, ""):
            return CommissionFilter.ALL
        if isinstance(value, str):
            return _COMMISSION_ALIASES.get(value.strip().lower(), value)
        return value

    @property
    def is_empty(self) -> bool:
        return (
            not self.search_text
            and self.exact_date is None
            and self.commission is CommissionFilter.ALL
        )


def matches_search(record: LedgerRecord, term: str) -> bool:
    needle = term.lower()
    return any(needle in value.lower() for value in record.search_values())


def matches_date(record: LedgerRecord, day: date, tz: Optional[tzinfo] = None) -> bool:
    return local_date(record.created_at, tz) == day


def matches_commission(record: LedgerRecord, flag: CommissionFilter) -> bool:
    # Commission only exists on the goods ledger.
    if flag is CommissionFilter.ALL or not isinstance(record, GoodsRecord):
        return True
    return record.with_commission is (flag is CommissionFilter.WITH)


def build_predicates(
    criteria: FilterCriteria, tz: Optional[tzinfo] = None
) -> List[Predicate]:
    predicates: List[Predicate] = []
    if criteria.search_text:
        term = criteria.search_text
        predicates.append(lambda r: matches_search(r, term))
    if criteria.exact_date is not None:
        day = criteria.exact_date
        predicates.append(lambda r: matches_date(r, day, tz))
    if criteria.commission is not CommissionFilter.ALL:
        flag = criteria.commission
        predicates.append(lambda r: matches_commission(r, flag))
    return predicates


def filter_records(
    records: Sequence[R],
    criteria: Optional[FilterCriteria] = None,
    tz: Optional[tzinfo] = None,
) -> List[R]:
    """
    Return the records that satisfy every supplied criterion.

    Parameters
    ----------
    records : Sequence[LedgerRecord]
        A ledger collection, normally newest-first from the gateway.
    criteria : FilterCriteria | None
        View parameters; None behaves like an empty criteria object.
    tz : tzinfo | None
        Wall-clock zone for the calendar-day comparison. Defaults to the
        configured display zone (the system local zone when unset).
    """
    criteria = criteria or FilterCriteria()
    predicates = build_predicates(criteria, tz if tz is not None else display_zone())
    if not predicates:
        return list(records)

    filtered = [record for record in records if all(p(record) for p in predicates)]
    log.debug(
        "[FILTER] %d -> %d records",
        len(records),
        len(filtered),
        extra={
            "search": criteria.search_text,
            "date": str(criteria.exact_date or ""),
            "commission": criteria.commission.value,
        },
    )
    return filtered


__all__ = [
    "FilterCriteria",
    "build_predicates",
    "filter_records",
    "matches_commission",
    "matches_date",
    "matches_search",
]
