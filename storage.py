# -*- coding: utf-8 -*-
"""
Хранилище коллекций (blob store).

Коллекция — это список словарей, который читается и пишется целиком.
Ядро учёта ключей не знает, где лежат данные: ему нужен только
``load(name)`` / ``save(name, records)`` / ``save_many({...})``.

- SqlBlobStore    — одна строка таблицы ``stored_collections`` на коллекцию (JSON).
- MemoryBlobStore — словарь в памяти (тесты и KEY_STORE_BACKEND=memory).
"""
import copy
import logging

from sqlalchemy.exc import SQLAlchemyError

from errors import StoreError
from extensions import db
from models import StoredCollection

logger = logging.getLogger(__name__)

KEYS = "keys"
USERS = "users"
KEY_HISTORY = "keyHistory"

COLLECTIONS = (KEYS, USERS, KEY_HISTORY)


class BlobStore:
    """Interface of the persistence transport."""

    def load(self, name: str) -> list:
        raise NotImplementedError

    def save(self, name: str, records: list) -> None:
        self.save_many({name: records})

    def save_many(self, collections: dict) -> None:
        raise NotImplementedError

    def drop(self, name: str) -> None:
        raise NotImplementedError


class MemoryBlobStore(BlobStore):
    def __init__(self, initial: dict | None = None):
        self._data = copy.deepcopy(initial or {})

    def load(self, name: str) -> list:
        return copy.deepcopy(self._data.get(name, []))

    def save_many(self, collections: dict) -> None:
        for name, records in collections.items():
            self._data[name] = copy.deepcopy(list(records))

    def drop(self, name: str) -> None:
        self._data.pop(name, None)


class SqlBlobStore(BlobStore):
    """
    Коллекции в таблице ``stored_collections`` через общий ``db.session``.
    ``save_many`` пишет все переданные коллекции одним commit'ом.
    Работает только внутри app context.
    """

    def load(self, name: str) -> list:
        try:
            row = db.session.get(StoredCollection, name)
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.error("Failed to load collection %s: %s", name, exc)
            raise StoreError(collection=name) from exc
        if row is None:
            return []
        if not isinstance(row.payload, list):
            logger.error("Collection %s holds %s instead of a list", name, type(row.payload).__name__)
            raise StoreError("Повреждённые данные в хранилище", collection=name)
        return copy.deepcopy(row.payload)

    def save_many(self, collections: dict) -> None:
        try:
            for name, records in collections.items():
                row = db.session.get(StoredCollection, name)
                if row is None:
                    row = StoredCollection(name=name)
                    db.session.add(row)
                # новый объект списка, иначе JSON-колонка не увидит изменения
                row.payload = copy.deepcopy(list(records))
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.error("Failed to save collections %s: %s", ", ".join(collections), exc)
            raise StoreError(collections=sorted(collections)) from exc

    def drop(self, name: str) -> None:
        try:
            row = db.session.get(StoredCollection, name)
            if row is not None:
                db.session.delete(row)
                db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreError(collection=name) from exc


def make_store(backend: str) -> BlobStore:
    if backend == "memory":
        return MemoryBlobStore()
    if backend == "sql":
        return SqlBlobStore()
    raise ValueError(f"Unknown KEY_STORE_BACKEND: {backend!r}")


class Repository:
    """
    Коллекция записей в памяти + (де)сериализация.
    Записи неизменяемые: изменение = замена объекта в списке,
    поэтому ``checkpoint()`` достаточно поверхностной копии.
    """

    collection = ""
    record_type = None

    def __init__(self):
        self._items = []

    def load(self, store: BlobStore) -> None:
        raw = store.load(self.collection)
        try:
            self._items = [self.record_type.from_dict(r) for r in raw]
        except (KeyError, TypeError, ValueError) as exc:
            logger.error("Malformed record in collection %s: %s", self.collection, exc)
            raise StoreError("Повреждённые данные в хранилище", collection=self.collection) from exc
        logger.info("Loaded %d record(s) from %s", len(self._items), self.collection)

    def dump(self) -> list:
        return [item.to_dict() for item in self._items]

    def checkpoint(self) -> list:
        return list(self._items)

    def restore(self, items: list) -> None:
        self._items = list(items)

    def all(self) -> list:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)
