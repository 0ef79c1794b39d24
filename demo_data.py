# -*- coding: utf-8 -*-
"""Демо-данные для пустой установки (те же, что в первой версии интерфейса)."""

DEMO_USERS = [
    {"name": "Администратор", "login": "admin", "password": "admin", "role": "admin"},
    {"name": "Иван Петров", "login": "ipetrov", "password": "user123", "role": "user", "card_code": "EMP001"},
    {"name": "Анна Сидорова", "login": "asidorova", "password": "pass456", "role": "user",
     "card_code": "EMP002", "active": False},
]

DEMO_KEYS = [
    {"name": "Офис 101", "barcode": "123456789", "location": "1 этаж"},
    {"name": "Склад А", "barcode": "987654321", "location": "Подвал", "taken_by": "Иван Петров"},
    {"name": "Кабинет директора", "barcode": "456789123", "location": "2 этаж"},
]
