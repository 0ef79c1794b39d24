# -*- coding: utf-8 -*-
"""
Справочник пользователей (Directory Store).

Пользователь нужен для двух вещей:
- вход в систему (логин + пароль);
- выдача ключа по коду карты сотрудника (card code).

Логин уникален всегда, код карты — когда задан. Деактивированному
пользователю нельзя ни войти, ни получить ключ. Удаление пользователя
не трогает историю операций.
"""
import secrets
import string
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from errors import (
    DuplicateCardCode,
    DuplicateLogin,
    IncompleteInput,
    ProtectedAccount,
    UserNotFound,
    ValidationFailure,
)
from storage import USERS, Repository
from utils import format_ts, new_id, parse_ts, utcnow

ROLES = ("user", "admin")
HASH_PREFIXES = ("pbkdf2:", "scrypt:")
PASSWORD_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class User(UserMixin):
    """Represents an operator or key recipient."""

    id: str
    name: str
    login: str
    password: str
    role: str = "user"
    card_code: Optional[str] = None
    active: bool = True
    created_at: Optional[datetime] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    # Flask-Login: неактивных не пускаем в сессию
    @property
    def is_active(self) -> bool:
        return self.active

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def display_name(self) -> str:
        """Full name, else "first last", else login."""
        if self.name and self.name.strip():
            return self.name.strip()
        composed = " ".join(p.strip() for p in (self.first_name, self.last_name) if p and p.strip())
        if composed:
            return composed
        return self.login

    def check_password(self, password: str) -> bool:
        if self.password.startswith(HASH_PREFIXES):
            return check_password_hash(self.password, password)
        return self.password == password

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "login": self.login,
            "password": self.password,
            "role": self.role,
            "active": self.active,
            "createdAt": format_ts(self.created_at),
        }
        if self.card_code:
            data["cardCode"] = self.card_code
        if self.first_name:
            data["firstName"] = self.first_name
        if self.last_name:
            data["lastName"] = self.last_name
        return data

    def to_public(self) -> dict:
        data = self.to_dict()
        data.pop("password")
        data["displayName"] = self.display_name
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            login=data["login"],
            password=data.get("password") or "",
            role=data.get("role") or "user",
            card_code=data.get("cardCode") or None,
            active=bool(data.get("active", True)),
            created_at=parse_ts(data.get("createdAt")),
            first_name=data.get("firstName") or None,
            last_name=data.get("lastName") or None,
        )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<User {self.login}>"


def generate_password(length: int = 8) -> str:
    """Random password of lowercase letters and digits."""
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


class DirectoryStore(Repository):
    collection = USERS
    record_type = User

    def __init__(self, protected_login: str = "admin", hash_passwords: bool = False):
        super().__init__()
        self.protected_login = protected_login
        self.hash_passwords = hash_passwords

    # ---------- Чтение ----------
    def get(self, user_id) -> Optional[User]:
        user_id = str(user_id)
        return next((u for u in self._items if u.id == user_id), None)

    def find_by_login(self, login: str) -> Optional[User]:
        return next((u for u in self._items if u.login == login), None)

    def find_by_credentials(self, login: str, password: str) -> Optional[User]:
        """Exact match on login; the password is checked against the stored secret."""
        user = self.find_by_login(login)
        if user is None or not user.check_password(password):
            return None
        return user

    def find_by_card_code(self, code: str) -> Optional[User]:
        if not code:
            return None
        return next((u for u in self._items if u.card_code == code), None)

    @staticmethod
    def is_usable(user: User) -> bool:
        return bool(user.active)

    # ---------- Изменения (вызываются из KeyLedger под его блокировкой) ----------
    def add(self, name: str, login: str, password: str, role: str = "user",
            card_code: Optional[str] = None, first_name: Optional[str] = None,
            last_name: Optional[str] = None, active: bool = True) -> User:
        if not name or not login or not password:
            raise IncompleteInput()
        self._check_role(role)
        card_code = card_code or None
        self._check_unique(login, card_code)

        user = User(
            id=new_id(),
            name=name,
            login=login,
            password=self._secret(password),
            role=role,
            card_code=card_code,
            active=active,
            created_at=utcnow(),
            first_name=first_name or None,
            last_name=last_name or None,
        )
        self._items.append(user)
        return user

    def update(self, user_id, **changes) -> User:
        """
        Редактирование карточки. Пустой пароль = оставить прежний,
        пустой код карты = убрать код.
        """
        user = self._require(user_id)
        allowed = {"name", "login", "password", "role", "card_code", "active", "first_name", "last_name"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationFailure(f"Неизвестные поля: {', '.join(sorted(unknown))}")

        if "card_code" in changes:
            changes["card_code"] = changes["card_code"] or None
        if "password" in changes:
            if changes["password"]:
                changes["password"] = self._secret(changes["password"])
            else:
                changes.pop("password")

        if user.login == self.protected_login and changes.get("login", user.login) != user.login:
            raise ProtectedAccount("Нельзя изменить логин администратора")
        updated = replace(user, **changes)
        if not updated.name or not updated.login:
            raise IncompleteInput()
        self._check_role(updated.role)
        self._check_unique(updated.login, updated.card_code, exclude_id=user.id)
        self._swap(updated)
        return updated

    def toggle_active(self, user_id) -> User:
        user = self._require(user_id)
        updated = replace(user, active=not user.active)
        self._swap(updated)
        return updated

    def remove(self, user_id) -> User:
        user = self._require(user_id)
        if user.login == self.protected_login:
            raise ProtectedAccount()
        self._items = [u for u in self._items if u.id != user.id]
        return user

    # ---------- Вспомогательное ----------
    def _require(self, user_id) -> User:
        user = self.get(user_id)
        if user is None:
            raise UserNotFound("Пользователь не найден", user_id=str(user_id))
        return user

    def _swap(self, updated: User) -> None:
        self._items = [updated if u.id == updated.id else u for u in self._items]

    def _secret(self, password: str) -> str:
        if self.hash_passwords:
            return generate_password_hash(password)
        return password

    def _check_unique(self, login: str, card_code: Optional[str], exclude_id: Optional[str] = None) -> None:
        others = [u for u in self._items if u.id != exclude_id]
        if any(u.login == login for u in others):
            raise DuplicateLogin(login=login)
        if card_code and any(u.card_code == card_code for u in others):
            raise DuplicateCardCode(card_code=card_code)

    @staticmethod
    def _check_role(role: str) -> None:
        if role not in ROLES:
            raise ValidationFailure(f"Неизвестная роль: {role}")
