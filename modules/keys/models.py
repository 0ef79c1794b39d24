# -*- coding: utf-8 -*-
"""
Реестр ключей (Key Registry).

Ключ = физический ключ со штрих-кодом. Штрих-код уникален и служит
естественным ключом для поиска.

Состояния:
- available=True  — ключ на месте, taken_by/taken_at пустые;
- available=False — ключ выдан, taken_by и taken_at заполнены оба.

Переходы mark_taken / mark_returned вызывает только KeyLedger
(он же пишет историю и сохраняет коллекции).
"""
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from errors import DuplicateBarcode, IncompleteInput, InvalidTransition, KeyNotFound
from storage import KEYS, Repository
from utils import format_ts, new_id, parse_ts


@dataclass(frozen=True)
class Key:
    id: str
    name: str
    barcode: str
    location: str
    available: bool = True
    taken_by: Optional[str] = None
    taken_at: Optional[datetime] = None

    def __post_init__(self):
        held = self.taken_by is not None and self.taken_at is not None
        free = self.taken_by is None and self.taken_at is None
        if self.available and not free:
            raise ValueError(f"Key {self.barcode}: available key must not have a holder")
        if not self.available and not held:
            raise ValueError(f"Key {self.barcode}: issued key needs both holder and time")

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "barcode": self.barcode,
            "location": self.location,
            "available": self.available,
        }
        if not self.available:
            data["takenBy"] = self.taken_by
            data["takenAt"] = format_ts(self.taken_at)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Key":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            barcode=str(data["barcode"]),
            location=data.get("location") or "",
            available=bool(data.get("available", True)),
            taken_by=data.get("takenBy") or None,
            taken_at=parse_ts(data.get("takenAt")),
        )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Key {self.barcode}: {self.name}>"


class KeyRegistry(Repository):
    collection = KEYS
    record_type = Key

    def get(self, key_id) -> Optional[Key]:
        key_id = str(key_id)
        return next((k for k in self._items if k.id == key_id), None)

    def find_by_barcode(self, code: str) -> Optional[Key]:
        return next((k for k in self._items if k.barcode == code), None)

    def insert(self, name: str, barcode: str, location: str) -> Key:
        if not name or not barcode or not location:
            raise IncompleteInput()
        if self.find_by_barcode(barcode) is not None:
            raise DuplicateBarcode(barcode=barcode)
        key = Key(id=new_id(), name=name, barcode=barcode, location=location)
        self._items.append(key)
        return key

    def remove(self, key_id) -> Key:
        """Удаляет ключ независимо от того, выдан он или нет."""
        key = self._require(key_id)
        self._items = [k for k in self._items if k.id != key.id]
        return key

    def mark_taken(self, key_id, holder_name: str, at: datetime) -> Key:
        key = self._require(key_id)
        if not key.available:
            raise InvalidTransition(barcode=key.barcode)
        updated = replace(key, available=False, taken_by=holder_name, taken_at=at)
        self._swap(updated)
        return updated

    def mark_returned(self, key_id) -> Key:
        key = self._require(key_id)
        if key.available:
            raise InvalidTransition(barcode=key.barcode)
        updated = replace(key, available=True, taken_by=None, taken_at=None)
        self._swap(updated)
        return updated

    def _require(self, key_id) -> Key:
        key = self.get(key_id)
        if key is None:
            raise KeyNotFound("Ключ не найден", key_id=str(key_id))
        return key

    def _swap(self, updated: Key) -> None:
        self._items = [updated if k.id == updated.id else k for k in self._items]
