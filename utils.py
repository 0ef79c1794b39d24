from datetime import datetime, timezone
from uuid import uuid4

from flask import request


def new_id() -> str:
    """Fresh stable identifier for a stored record."""
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.utcnow()


def format_ts(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def parse_ts(value: str | None) -> datetime | None:
    if not value:
        return None
    # JS-клиенты пишут "2024-01-01T10:00:00.000Z"
    if value.endswith("Z"):
        value = value[:-1]
    parsed = datetime.fromisoformat(value)
    # в журнале все метки наивные UTC, иначе их нельзя сравнивать
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def request_data() -> dict:
    """Payload of the current request: JSON body or form fields."""
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def field(data: dict, name: str) -> str:
    """Trimmed string value of a form/JSON field ('' when missing)."""
    value = data.get(name)
    if value is None:
        return ""
    return str(value).strip()


def raw_password(data: dict) -> str:
    """Password exactly as typed: пробелы по краям тоже часть пароля."""
    value = data.get("password")
    return "" if value is None else str(value)


def parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in {"1", "true", "yes", "on"}
