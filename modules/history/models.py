# -*- coding: utf-8 -*-
"""
Журнал операций с ключами (Audit Log).

Только добавление: запись создаётся один раз на каждую выдачу/возврат
и больше не меняется. Хранится в порядке добавления, сортировка
«новые сверху» делается при чтении.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Iterator, Optional

from storage import KEY_HISTORY, Repository
from utils import format_ts, new_id, parse_ts

TAKEN = "taken"
RETURNED = "returned"
ACTIONS = (TAKEN, RETURNED)

ACTION_LABELS = {TAKEN: "Взят", RETURNED: "Возвращен"}


@dataclass(frozen=True)
class HistoryRecord:
    id: str
    key_name: str
    key_barcode: str
    action: str
    user_name: str
    timestamp: datetime

    def __post_init__(self):
        if self.action not in ACTIONS:
            raise ValueError(f"Unknown history action: {self.action!r}")

    @classmethod
    def for_key(cls, key, action: str, user_name: str, at: datetime) -> "HistoryRecord":
        """Snapshot of the key's name and barcode at event time."""
        return cls(
            id=new_id(),
            key_name=key.name,
            key_barcode=key.barcode,
            action=action,
            user_name=user_name,
            timestamp=at,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "keyName": self.key_name,
            "keyBarcode": self.key_barcode,
            "action": self.action,
            "userName": self.user_name,
            "timestamp": format_ts(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryRecord":
        return cls(
            id=str(data["id"]),
            key_name=data["keyName"],
            key_barcode=str(data["keyBarcode"]),
            action=data["action"],
            user_name=data.get("userName") or "",
            timestamp=parse_ts(data["timestamp"]),
        )


Predicate = Callable[[HistoryRecord], bool]


def text_filter(term: Optional[str]) -> Optional[Predicate]:
    """Key name and holder name case-insensitively, barcode as a plain substring."""
    if not term:
        return None
    needle = term.lower()

    def _match(record: HistoryRecord) -> bool:
        return (needle in record.key_name.lower()
                or needle in record.user_name.lower()
                or term in record.key_barcode)
    return _match


def holder_filter(user_name: str) -> Predicate:
    return lambda record: record.user_name == user_name


def all_of(*predicates: Optional[Predicate]) -> Optional[Predicate]:
    active = [p for p in predicates if p is not None]
    if not active:
        return None
    return lambda record: all(p(record) for p in active)


class HistoryView:
    """
    Перезапускаемая ленивая выборка: каждый проход заново фильтрует
    снимок журнала и отдаёт записи от новых к старым.
    """

    def __init__(self, records: Iterable[HistoryRecord], predicate: Optional[Predicate] = None):
        self._records = list(records)
        self._predicate = predicate

    def __iter__(self) -> Iterator[HistoryRecord]:
        # reversed + стабильная сортировка: при равном времени позже добавленная запись идёт первой
        ordered = sorted(reversed(self._records), key=lambda r: r.timestamp, reverse=True)
        for record in ordered:
            if self._predicate is None or self._predicate(record):
                yield record


class AuditLog(Repository):
    collection = KEY_HISTORY
    record_type = HistoryRecord

    def append(self, record: HistoryRecord) -> HistoryRecord:
        self._items.append(record)
        return record

    def query(self, predicate: Optional[Predicate] = None) -> HistoryView:
        return HistoryView(self._items, predicate)

    def latest_for_barcode(self, barcode: str) -> Optional[HistoryRecord]:
        return next(iter(self.query(lambda r: r.key_barcode == barcode)), None)
