from flask import Flask, jsonify
from dotenv import load_dotenv
import logging

load_dotenv()

from config import Config  # noqa: E402  (load_dotenv needs to run first)
from errors import KeyLedgerError  # noqa: E402
from extensions import db, login_manager  # noqa: E402  (load_dotenv needs to run first)
from ledger import KeyLedger  # noqa: E402
from storage import make_store  # noqa: E402

logger = logging.getLogger(__name__)


def create_app(test_config: dict | None = None) -> Flask:
    """Application factory for the key tracking service."""

    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger().setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # init extensions
    db.init_app(app)
    login_manager.init_app(app)

    # blueprints
    from modules.auth import bp as auth_bp
    from modules.keys import bp as keys_bp
    from modules.users import bp as users_bp
    from modules.history import bp as history_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(keys_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(history_bp)

    from ui_routes import ui
    app.register_blueprint(ui)  # домашняя "/"

    @app.errorhandler(KeyLedgerError)
    def handle_ledger_error(exc: KeyLedgerError):
        return jsonify(exc.to_dict()), exc.status

    @app.errorhandler(403)
    def handle_forbidden(_exc):
        return jsonify(ok=False, error="forbidden", message="Недостаточно прав для этого действия."), 403

    # DB + состояние ключей
    with app.app_context():
        # Важно: модели должны быть импортированы до create_all()
        import models  # noqa: F401

        db.create_all()

        ledger = KeyLedger(
            make_store(app.config["KEY_STORE_BACKEND"]),
            protected_login=app.config["PROTECTED_LOGIN"],
            hash_passwords=app.config["HASH_NEW_PASSWORDS"],
        )
        ledger.load()
        if app.config.get("SEED_DEMO_DATA"):
            ledger.seed_defaults()
        app.extensions["key_ledger"] = ledger

    return app

if __name__ == "__main__":
    app = create_app()
    app.run(debug=True)
