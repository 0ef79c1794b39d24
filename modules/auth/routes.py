"""Login, logout and the session user."""

from flask import jsonify
from flask_login import current_user, login_required, login_user, logout_user

from extensions import current_ledger, login_manager
from utils import field, raw_password, request_data

from . import bp


@login_manager.user_loader
def load_user(user_id: str | None):
    """Resolve the session user id through the ledger's directory."""
    if not user_id:
        return None
    return current_ledger().get_user(user_id)


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify(ok=False, error="unauthorized", message="Войдите в систему"), 401


@bp.route("/login", methods=["POST"])
def login():
    data = request_data()
    # пароль не логируем и не тримим: сравнивается как есть
    user = current_ledger().authenticate(field(data, "login"), raw_password(data))
    if user is None:
        return jsonify(ok=False, error="invalid_credentials", message="Неверный логин или пароль"), 401

    login_user(user)
    greeting = "Добро пожаловать, администратор!" if user.is_admin else f"Добро пожаловать, {user.display_name}!"
    return jsonify(ok=True, message=greeting, user=user.to_public())


@bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify(ok=True)


@bp.route("/me")
@login_required
def me():
    return jsonify(ok=True, user=current_user.to_public())
