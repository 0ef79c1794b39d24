# -*- coding: utf-8 -*-
"""
KEY LEDGER — единственная точка, через которую меняется состояние ключей.

Собирает вместе три коллекции:
- DirectoryStore — пользователи (логин/пароль, код карты, активность);
- KeyRegistry    — ключи (где лежит, у кого на руках);
- AuditLog       — журнал выдач/возвратов.

Правила:
- сначала все проверки, потом изменения: ошибка никогда не оставляет
  частично применённый переход;
- выдача: ключ → сотрудник → доступность ключа (неверный код карты
  сообщаем даже для уже выданного ключа);
- каждое изменение сразу сохраняется в хранилище; если запись не удалась,
  коллекции в памяти откатываются к последнему сохранённому состоянию;
- все операции (и чтение снимков) идут под одной блокировкой, поэтому
  никто не увидит ключ, выданный без записи в журнале.
"""
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional

from demo_data import DEMO_KEYS, DEMO_USERS
from errors import (
    KeyAlreadyAvailable,
    KeyAlreadyIssued,
    KeyLedgerError,
    KeyNotFound,
    StoreError,
    UserInactive,
    UserNotFound,
    ValidationFailure,
)
from modules.history.models import (
    RETURNED,
    TAKEN,
    AuditLog,
    HistoryRecord,
    all_of,
    holder_filter,
    text_filter,
)
from modules.keys.models import Key, KeyRegistry
from modules.users.models import DirectoryStore, User
from storage import BlobStore
from utils import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssueResult:
    key: Key
    holder_name: str


class KeyLedger:
    def __init__(self, store: BlobStore, protected_login: str = "admin", hash_passwords: bool = False):
        self.store = store
        self.directory = DirectoryStore(protected_login=protected_login, hash_passwords=hash_passwords)
        self.registry = KeyRegistry()
        self.audit_log = AuditLog()
        self._lock = threading.RLock()

    # ---------- Загрузка ----------
    def load(self) -> None:
        with self._lock:
            for repo in (self.directory, self.registry, self.audit_log):
                repo.load(self.store)

    def seed_defaults(self, users=DEMO_USERS, keys=DEMO_KEYS) -> bool:
        """Demo users and keys for an empty installation. Returns True when seeded."""
        with self._lock:
            if len(self.directory) or len(self.registry):
                return False
            with self._changes(self.directory, self.registry, self.audit_log):
                for data in users:
                    self.directory.add(**data)
                for data in keys:
                    holder = data.get("taken_by")
                    key = self.registry.insert(data["name"], data["barcode"], data["location"])
                    if holder:
                        at = utcnow()
                        key = self.registry.mark_taken(key.id, holder, at)
                        self.audit_log.append(HistoryRecord.for_key(key, TAKEN, holder, at))
            logger.info("Seeded %d demo user(s) and %d demo key(s)", len(users), len(keys))
            return True

    # ---------- Ключи ----------
    def add_key(self, name: str, barcode: str, location: str) -> Key:
        with self._changes(self.registry):
            key = self.registry.insert(name, barcode, location)
        logger.info("Key added: %s (%s)", key.name, key.barcode)
        return key

    def delete_key(self, key_id) -> Key:
        # выданный ключ удаляется молча: записи в журнале не будет
        with self._changes(self.registry):
            key = self.registry.remove(key_id)
        if key.available:
            logger.info("Key deleted: %s (%s)", key.name, key.barcode)
        else:
            logger.warning("Key deleted while held by %s: %s (%s)", key.taken_by, key.name, key.barcode)
        return key

    def list_keys(self) -> list:
        with self._lock:
            return self.registry.all()

    def find_key(self, barcode: str) -> Key:
        with self._lock:
            key = self.registry.find_by_barcode(barcode)
        if key is None:
            raise KeyNotFound(barcode=barcode)
        return key

    def issue_key(self, barcode: str, card_code: Optional[str] = None,
                  holder: Optional[User] = None) -> IssueResult:
        """
        Выдача ключа.
        card_code — выдача администратором по карте сотрудника;
        holder    — самообслуживание, пользователь уже вошёл в систему.
        """
        if (card_code is None) == (holder is None):
            raise ValidationFailure("Укажите либо код карты, либо получателя")

        with self._lock:
            try:
                key = self.registry.find_by_barcode(barcode)
                if key is None:
                    raise KeyNotFound(barcode=barcode)

                user = holder
                if card_code is not None:
                    user = self.directory.find_by_card_code(card_code)
                    if user is None:
                        raise UserNotFound(card_code=card_code)
                if not self.directory.is_usable(user):
                    raise UserInactive(login=user.login)

                if not key.available:
                    raise KeyAlreadyIssued(barcode=barcode, taken_by=key.taken_by)
            except KeyLedgerError as exc:
                logger.warning("Issue of %r rejected: %s", barcode, exc.code)
                raise

            holder_name = user.display_name
            at = utcnow()
            with self._changes(self.registry, self.audit_log):
                key = self.registry.mark_taken(key.id, holder_name, at)
                self.audit_log.append(HistoryRecord.for_key(key, TAKEN, holder_name, at))

        logger.info("Key issued: %s (%s) to %s", key.name, key.barcode, holder_name)
        return IssueResult(key=key, holder_name=holder_name)

    def return_key(self, barcode: str) -> Key:
        with self._lock:
            key = self.registry.find_by_barcode(barcode)
            if key is None:
                logger.warning("Return of %r rejected: key_not_found", barcode)
                raise KeyNotFound(barcode=barcode)
            if key.available:
                logger.warning("Return of %r rejected: key_already_available", barcode)
                raise KeyAlreadyAvailable(barcode=barcode)

            holder_name = key.taken_by
            with self._changes(self.registry, self.audit_log):
                key = self.registry.mark_returned(key.id)
                self.audit_log.append(HistoryRecord.for_key(key, RETURNED, holder_name, utcnow()))

        logger.info("Key returned: %s (%s) by %s", key.name, key.barcode, holder_name)
        return key

    # ---------- Журнал ----------
    def query_history(self, filter_text: Optional[str] = None, user_name: Optional[str] = None):
        """Newest first. ``user_name`` narrows to one holder (per-user view)."""
        predicate = all_of(
            text_filter(filter_text),
            holder_filter(user_name) if user_name is not None else None,
        )
        with self._lock:
            return self.audit_log.query(predicate)

    # ---------- Пользователи ----------
    def authenticate(self, login: str, password: str) -> Optional[User]:
        with self._lock:
            user = self.directory.find_by_credentials(login, password)
        if user is None:
            logger.warning("Failed login attempt for %r", login)
            return None
        if not self.directory.is_usable(user):
            logger.warning("Login of inactive user %r refused", login)
            raise UserInactive(login=login)
        return user

    def get_user(self, user_id) -> Optional[User]:
        with self._lock:
            return self.directory.get(user_id)

    def list_users(self) -> list:
        with self._lock:
            return self.directory.all()

    def add_user(self, name: str, login: str, password: str, role: str = "user",
                 card_code: Optional[str] = None, **extra) -> User:
        with self._changes(self.directory):
            user = self.directory.add(name, login, password, role=role, card_code=card_code, **extra)
        logger.info("User added: %s (role %s)", user.login, user.role)
        return user

    def update_user(self, user_id, **changes) -> User:
        with self._changes(self.directory):
            user = self.directory.update(user_id, **changes)
        logger.info("User updated: %s", user.login)
        return user

    def toggle_user(self, user_id) -> User:
        with self._changes(self.directory):
            user = self.directory.toggle_active(user_id)
        logger.info("User %s is now %s", user.login, "active" if user.active else "inactive")
        return user

    def delete_user(self, user_id) -> User:
        with self._changes(self.directory):
            user = self.directory.remove(user_id)
        logger.info("User deleted: %s", user.login)
        return user

    # ---------- Сводка для панели администратора ----------
    def stats(self) -> dict:
        with self._lock:
            keys = self.registry.all()
            users = self.directory.all()
        return {
            "totalKeys": len(keys),
            "availableKeys": sum(1 for k in keys if k.available),
            "totalUsers": len(users),
            "activeUsers": sum(1 for u in users if u.active),
        }

    # ---------- Атомарность ----------
    @contextmanager
    def _changes(self, *repos):
        """
        Изменения коллекций внутри блока сохраняются одной записью
        в хранилище. Любая ошибка (проверка или хранилище) возвращает
        коллекции к состоянию до блока.
        """
        with self._lock:
            saved = [(repo, repo.checkpoint()) for repo in repos]
            try:
                yield
                self.store.save_many({repo.collection: repo.dump() for repo in repos})
            except StoreError:
                for repo, items in saved:
                    repo.restore(items)
                logger.error("Changes to %s rolled back: store write failed",
                             ", ".join(repo.collection for repo in repos))
                raise
            except Exception:
                for repo, items in saved:
                    repo.restore(items)
                raise
