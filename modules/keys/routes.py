# -*- coding: utf-8 -*-
"""HTTP routes for keys: registry management, issue and return."""

from flask import abort, jsonify
from flask_login import current_user, login_required

from errors import IncompleteInput
from extensions import current_ledger
from permissions import can_issue_by_card, role_required
from utils import field, request_data

from . import bp


def _key_json(key) -> dict:
    return key.to_dict()


def _barcode(data: dict) -> str:
    # сканер и ручной ввод дают одну и ту же строку, лишние пробелы срезаем
    barcode = field(data, "barcode")
    if not barcode:
        raise IncompleteInput("Отсканируйте или введите штрих-код")
    return barcode


# ---------- Список ----------
@bp.route("/")
@login_required
def list_keys():
    keys = current_ledger().list_keys()
    return jsonify(ok=True, keys=[_key_json(k) for k in keys])


# ---------- Поиск по штрих-коду ----------
@bp.route("/lookup/<string:barcode>")
@login_required
def lookup_key(barcode: str):
    key = current_ledger().find_key(barcode.strip())
    return jsonify(ok=True, key=_key_json(key))


# ---------- Новый ключ ----------
@bp.route("/", methods=["POST"])
@role_required(["admin"])
def add_key():
    data = request_data()
    key = current_ledger().add_key(
        name=field(data, "name"),
        barcode=field(data, "barcode"),
        location=field(data, "location"),
    )
    return jsonify(ok=True, message="Ключ добавлен", key=_key_json(key)), 201


# ---------- Удаление ----------
@bp.route("/<string:key_id>", methods=["DELETE"])
@bp.route("/<string:key_id>/delete", methods=["POST"])
@role_required(["admin"])
def delete_key(key_id: str):
    key = current_ledger().delete_key(key_id)
    return jsonify(ok=True, message="Ключ удален", key=_key_json(key))


# ---------- Выдача ----------
@bp.route("/issue", methods=["POST"])
@login_required
def issue_key():
    """
    С ``card_code`` — выдача администратором по карте сотрудника.
    Без него — пользователь берёт ключ на себя.
    """
    data = request_data()
    barcode = _barcode(data)
    card_code = field(data, "card_code") or field(data, "cardCode")
    ledger = current_ledger()

    if card_code:
        if not can_issue_by_card():
            abort(403)
        result = ledger.issue_key(barcode, card_code=card_code)
    else:
        result = ledger.issue_key(barcode, holder=current_user._get_current_object())

    return jsonify(
        ok=True,
        message=f'Ключ "{result.key.name}" выдан',
        key=_key_json(result.key),
        holder=result.holder_name,
    )


# ---------- Возврат ----------
@bp.route("/return", methods=["POST"])
@login_required
def return_key():
    key = current_ledger().return_key(_barcode(request_data()))
    return jsonify(ok=True, message=f'Ключ "{key.name}" возвращен', key=_key_json(key))
