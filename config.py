import os

class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev_secret_key')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URI', 'sqlite:///keys.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    KEY_STORE_BACKEND = os.getenv('KEY_STORE_BACKEND', 'sql')  # sql | memory
    SEED_DEMO_DATA = os.getenv('SEED_DEMO_DATA', '1') == '1'
    PROTECTED_LOGIN = os.getenv('PROTECTED_LOGIN', 'admin')
    HASH_NEW_PASSWORDS = os.getenv('HASH_NEW_PASSWORDS', '0') == '1'
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
