from app import create_app
from errors import KeyLedgerError
from extensions import current_ledger


def create_user(app, login, password, role, name=None, card_code=None):
    with app.app_context():
        ledger = current_ledger()
        existing_user = ledger.directory.find_by_login(login)
        if existing_user:
            print(f"⚠️  User '{login}' already exists with role '{existing_user.role}'.")
            return None

        try:
            user = ledger.add_user(
                name=name or login,
                login=login,
                password=password,
                role=role,
                card_code=card_code,
            )
        except KeyLedgerError as exc:
            print(f"❌ {exc.message}")
            return None
        print(f"✅ Created user: {login} (role: {role})")
        return user


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Create a new user.')
    parser.add_argument('login', help='Login')
    parser.add_argument('password', help='Password')
    parser.add_argument('role', choices=['admin', 'user'], help='User role')
    parser.add_argument('--name', help='Display name (defaults to login)')
    parser.add_argument('--card-code', dest='card_code', help='Employee card code')

    args = parser.parse_args()
    create_user(create_app(), args.login, args.password, args.role, name=args.name, card_code=args.card_code)


if __name__ == '__main__':
    main()
