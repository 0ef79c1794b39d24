"""HTTP routes for the user directory (administrators only)."""

from flask import jsonify

from extensions import current_ledger
from permissions import role_required
from utils import field, parse_bool, raw_password, request_data

from . import bp
from .models import generate_password

# поле формы/JSON -> атрибут User
EDITABLE_FIELDS = {
    "name": "name",
    "login": "login",
    "password": "password",
    "role": "role",
    "card_code": "card_code",
    "cardCode": "card_code",
    "first_name": "first_name",
    "firstName": "first_name",
    "last_name": "last_name",
    "lastName": "last_name",
}


@bp.route("/")
@role_required(["admin"])
def list_users():
    users = current_ledger().list_users()
    return jsonify(ok=True, users=[u.to_public() for u in users])


@bp.route("/", methods=["POST"])
@role_required(["admin"])
def add_user():
    data = request_data()
    password = raw_password(data)
    generated = None
    if not password and parse_bool(data.get("generate_password")):
        password = generated = generate_password()

    user = current_ledger().add_user(
        name=field(data, "name"),
        login=field(data, "login"),
        password=password,
        role=field(data, "role") or "user",
        card_code=field(data, "card_code") or field(data, "cardCode") or None,
        first_name=field(data, "first_name") or None,
        last_name=field(data, "last_name") or None,
    )
    payload = {"ok": True, "message": "Пользователь добавлен", "user": user.to_public()}
    if generated:
        payload["password"] = generated
    return jsonify(payload), 201


@bp.route("/<string:user_id>", methods=["PUT", "PATCH"])
@bp.route("/<string:user_id>/edit", methods=["POST"])
@role_required(["admin"])
def edit_user(user_id: str):
    data = request_data()
    changes = {}
    for name, attr in EDITABLE_FIELDS.items():
        if name == "password" and name in data:
            changes[attr] = raw_password(data)
        elif name in data:
            changes[attr] = field(data, name)
    if "active" in data:
        changes["active"] = parse_bool(data["active"])

    user = current_ledger().update_user(user_id, **changes)
    return jsonify(ok=True, message="Пользователь обновлен", user=user.to_public())


@bp.route("/<string:user_id>/toggle", methods=["POST"])
@role_required(["admin"])
def toggle_user(user_id: str):
    user = current_ledger().toggle_user(user_id)
    return jsonify(ok=True, message="Статус пользователя изменен", user=user.to_public())


@bp.route("/<string:user_id>", methods=["DELETE"])
@bp.route("/<string:user_id>/delete", methods=["POST"])
@role_required(["admin"])
def delete_user(user_id: str):
    user = current_ledger().delete_user(user_id)
    return jsonify(ok=True, message="Пользователь удален", user=user.to_public())


@bp.route("/generate-password")
@role_required(["admin"])
def new_password():
    return jsonify(ok=True, password=generate_password())
