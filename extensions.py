from flask import current_app
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager

# Инициализация расширений без привязки к конкретному приложению

# База данных (хранилище коллекций)
db = SQLAlchemy()

# Авторизация и сессии операторов
login_manager = LoginManager()


def current_ledger():
    """KeyLedger of the running application (set up in create_app)."""
    return current_app.extensions["key_ledger"]
