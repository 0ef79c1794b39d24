# ui_routes.py — главная: сводка по ключам и права текущего пользователя
from flask import Blueprint, jsonify, url_for
from flask_login import current_user, login_required

from extensions import current_ledger
from permissions import can_keys_manage, permission_flags

ui = Blueprint("ui", __name__)


@ui.route("/")
@login_required
def home():
    ledger = current_ledger()
    links = {
        "keys": url_for("keys.list_keys"),
        "history": url_for("history.list_history"),
        "issue": url_for("keys.issue_key"),
        "return": url_for("keys.return_key"),
    }
    payload = {
        "ok": True,
        "user": current_user.to_public(),
        "permissions": permission_flags(),
        "links": links,
    }
    # сводка — только для панели администратора
    if can_keys_manage():
        payload["stats"] = ledger.stats()
        links["users"] = url_for("users.list_users")
    return jsonify(payload)
