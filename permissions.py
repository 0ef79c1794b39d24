# permissions.py
# -*- coding: utf-8 -*-
"""
RBAC для сервиса ключей.
- role_required([...]) — основной декоратор на роуты (admin всегда имеет доступ).
- require_role(*roles) — то же самое, короче в записи.
- can_* — флаги прав текущего пользователя (отдаются на главной).

Роли:
- user  — смотреть ключи, брать/возвращать ключ на себя, своя история
- admin — всё как user + ключи/пользователи, выдача по карте, полная история
"""

from functools import wraps
from typing import Iterable, Set

from flask import abort
from flask_login import current_user, login_required


# ----------------------------- БАЗОВЫЙ ДЕКОРАТОР ----------------------------- #
def role_required(allowed_roles: Iterable[str]):
    """
    Декоратор для ограничения доступа по ролям.
    Пример:
        @role_required(["admin"])
        def view(): ...

    Правила:
    - Неавторизованный → 401 (через login_manager).
    - admin имеет доступ всегда.
    - Если не хватает прав → 403.
    """
    if isinstance(allowed_roles, str):
        allowed: Set[str] = {allowed_roles}
    else:
        allowed = set(allowed_roles or [])

    def decorator(view_func):
        @wraps(view_func)
        @login_required
        def wrapped(*args, **kwargs):
            role = getattr(current_user, "role", None)
            if role == "admin" or role in allowed:
                return view_func(*args, **kwargs)
            abort(403)

        return wrapped
    return decorator


def require_role(*roles: str):
    """Shorthand: ``@require_role("admin")`` == ``@role_required(["admin"])``."""
    return role_required(list(roles))


# --------------------------- ВСПОМОГАТЕЛЬНЫЕ ФУНКЦИИ ------------------------ #
def _is(*roles: str) -> bool:
    """Роль текущего пользователя входит в roles (admin — всегда да)."""
    if not current_user.is_authenticated:
        return False
    role = getattr(current_user, "role", None)
    return role == "admin" or role in roles


# ================================ UI-ПРАВА ================================== #
def can_keys_manage():       return _is("admin")          # добавлять/удалять ключи
def can_users_manage():      return _is("admin")          # справочник пользователей
def can_issue_by_card():     return _is("admin")          # выдача по коду карты
def can_history_view_all():  return _is("admin")          # весь журнал, экспорт
def can_issue_self():        return _is("user")           # взять/вернуть ключ на себя


def permission_flags() -> dict:
    return {
        "keys_manage": can_keys_manage(),
        "users_manage": can_users_manage(),
        "issue_by_card": can_issue_by_card(),
        "history_view_all": can_history_view_all(),
        "issue_self": can_issue_self(),
    }

