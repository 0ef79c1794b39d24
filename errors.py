# -*- coding: utf-8 -*-
"""
Ошибки учёта ключей.

Каждая ошибка несёт стабильный ``code`` (уходит в JSON-ответ), HTTP-статус и
сообщение для оператора. Классы сгруппированы по видам:

- ValidationFailure — вход не прошёл проверку, состояние не менялось;
- LookupFailure     — штрих-код / код карты / id ни на что не указывает;
- StateConflict     — переход недопустим в текущем состоянии;
- StoreError        — хранилище не смогло прочитать/записать коллекцию.
"""


class KeyLedgerError(Exception):
    """Base class for every failure reported by the key ledger."""

    code = "error"
    status = 400
    message = "Ошибка операции"

    def __init__(self, message: str | None = None, **details):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        data = {"ok": False, "error": self.code, "message": self.message}
        if self.details:
            data["details"] = self.details
        return data


# ---------- Validation ----------
class ValidationFailure(KeyLedgerError):
    code = "validation_failed"
    status = 400


class IncompleteInput(ValidationFailure):
    code = "incomplete_input"
    message = "Заполните все поля"


class DuplicateBarcode(ValidationFailure):
    code = "duplicate_barcode"
    status = 409
    message = "Ключ с таким штрих-кодом уже существует"


class DuplicateLogin(ValidationFailure):
    code = "duplicate_login"
    status = 409
    message = "Пользователь с таким логином уже существует"


class DuplicateCardCode(ValidationFailure):
    code = "duplicate_card_code"
    status = 409
    message = "Пользователь с таким кодом карты уже существует"


# ---------- Lookup ----------
class LookupFailure(KeyLedgerError):
    code = "not_found"
    status = 404


class KeyNotFound(LookupFailure):
    code = "key_not_found"
    message = "Ключ с таким штрих-кодом не найден"


class UserNotFound(LookupFailure):
    code = "user_not_found"
    message = "Сотрудник с таким кодом карты не найден"


# ---------- State conflicts ----------
class StateConflict(KeyLedgerError):
    code = "state_conflict"
    status = 409


class KeyAlreadyIssued(StateConflict):
    code = "key_already_issued"
    message = "Ключ уже выдан"


class KeyAlreadyAvailable(StateConflict):
    code = "key_already_available"
    message = "Ключ уже доступен"


class UserInactive(StateConflict):
    code = "user_inactive"
    message = "Пользователь деактивирован"


class InvalidTransition(StateConflict):
    code = "invalid_transition"
    message = "Недопустимая смена состояния ключа"


class ProtectedAccount(StateConflict):
    code = "protected_account"
    message = "Нельзя удалить администратора"


# ---------- Store ----------
class StoreError(KeyLedgerError):
    code = "store_error"
    status = 503
    message = "Хранилище недоступно, изменения не сохранены"
