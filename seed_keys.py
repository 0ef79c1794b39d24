# -*- coding: utf-8 -*-
"""
seed_keys.py — утилита для начального наполнения коллекций.

Режимы:
- python seed_keys.py --create    → добавить демо-пользователей и ключи, если коллекции пустые
- python seed_keys.py --reset     → удалить коллекции keys/users/keyHistory и заполнить заново (ВНИМАНИЕ: история будет удалена)
"""

import argparse

from app import create_app
from extensions import current_ledger
from storage import COLLECTIONS


def reset_collections(ledger):
    """Удаляет все коллекции из хранилища и перечитывает пустое состояние."""
    for name in COLLECTIONS:
        ledger.store.drop(name)
    ledger.load()


def main():
    parser = argparse.ArgumentParser(description="Seed key tracking collections")
    grp = parser.add_mutually_exclusive_group(required=True)
    grp.add_argument("--create", action="store_true", help="заполнить демо-данными, если пусто")
    grp.add_argument("--reset", action="store_true", help="удалить коллекции и заполнить заново (история будет потеряна)")

    args = parser.parse_args()

    app = create_app({"SEED_DEMO_DATA": False})
    with app.app_context():
        ledger = current_ledger()
        if args.reset:
            print("→ Dropping collections …")
            reset_collections(ledger)
        print("→ Seeding demo data …")
        if ledger.seed_defaults():
            print("✔ Готово: демо-пользователи и ключи добавлены.")
        else:
            print("✔ Коллекции уже содержат данные, ничего не менялось.")


if __name__ == "__main__":
    main()
