"""Audit log: ordering, filtering and the history routes."""

from datetime import datetime, timedelta
from io import BytesIO

from openpyxl import load_workbook

from modules.history.models import AuditLog, HistoryRecord, holder_filter, text_filter

T0 = datetime(2024, 5, 1, 9, 0, 0)


def _record(key_name, barcode, action, user, minutes):
    return HistoryRecord(
        id=f"{barcode}-{minutes}",
        key_name=key_name,
        key_barcode=barcode,
        action=action,
        user_name=user,
        timestamp=T0 + timedelta(minutes=minutes),
    )


def _log():
    log = AuditLog()
    log.append(_record("Офис 101", "123456789", "taken", "Иван Петров", 0))
    log.append(_record("Склад А", "987654321", "taken", "Анна Сидорова", 30))
    log.append(_record("Офис 101", "123456789", "returned", "Иван Петров", 10))
    return log


def test_query_is_newest_first_but_storage_keeps_insertion_order():
    log = _log()
    assert [r.timestamp for r in log.query()] == [
        T0 + timedelta(minutes=30), T0 + timedelta(minutes=10), T0,
    ]
    assert [r.id for r in log.all()] == ["123456789-0", "987654321-30", "123456789-10"]


def test_equal_timestamps_show_latest_append_first():
    log = AuditLog()
    log.append(_record("Офис 101", "1", "taken", "A", 0))
    log.append(HistoryRecord(id="second", key_name="Офис 101", key_barcode="1",
                             action="returned", user_name="A", timestamp=T0))
    assert [r.id for r in log.query()] == ["second", "1-0"]


def test_query_is_restartable():
    view = _log().query()
    assert list(view) == list(view)
    assert len(list(view)) == 3


def test_query_is_a_snapshot():
    log = _log()
    view = log.query()
    log.append(_record("Кабинет директора", "456789123", "taken", "Иван Петров", 60))
    assert len(list(view)) == 3
    assert len(list(log.query())) == 4


def test_text_filter():
    log = _log()
    assert [r.key_name for r in log.query(text_filter("склад"))] == ["Склад А"]
    assert {r.user_name for r in log.query(text_filter("ИВАН"))} == {"Иван Петров"}
    assert len(list(log.query(text_filter("4567")))) == 2
    assert list(log.query(text_filter("nothing"))) == []
    assert text_filter("") is None


def test_holder_filter():
    log = _log()
    assert {r.user_name for r in log.query(holder_filter("Анна Сидорова"))} == {"Анна Сидорова"}


def test_latest_for_barcode():
    assert _log().latest_for_barcode("123456789").action == "returned"
    assert _log().latest_for_barcode("000") is None


def test_ledger_query_history_filters(ledger):
    ledger.add_key(name="Склад А", barcode="987654321", location="Подвал")
    ledger.issue_key("123456789", card_code="EMP001")
    ledger.issue_key("987654321", holder=ledger.directory.find_by_login("admin"))

    assert len(list(ledger.query_history())) == 2
    assert [r.key_barcode for r in ledger.query_history("офис")] == ["123456789"]
    assert [r.user_name for r in ledger.query_history(user_name="Администратор")] == ["Администратор"]
    assert list(ledger.query_history("офис", user_name="Администратор")) == []


# ---------- HTTP ----------
def test_history_for_admin(admin_client) -> None:
    admin_client.post("/keys/issue", json={"barcode": "123456789", "card_code": "EMP001"})
    admin_client.post("/keys/return", json={"barcode": "123456789"})

    body = admin_client.get("/history/").get_json()
    assert [r["action"] for r in body["records"]] == ["returned", "taken"]
    assert body["records"][0]["keyBarcode"] == "123456789"
    assert body["message"] is None

    body = admin_client.get("/history/?q=склад").get_json()
    assert body["records"] == []
    assert body["message"] == "Ничего не найдено"


def test_empty_history_message(admin_client) -> None:
    body = admin_client.get("/history/").get_json()
    assert body["message"] == "История операций пуста"


def test_user_sees_only_own_history(client, seeded, app) -> None:
    with app.app_context():
        seeded.issue_key("123456789", holder=seeded.directory.find_by_login("admin"))
        seeded.return_key("123456789")

    client.post("/auth/login", json={"login": "ipetrov", "password": "user123"})
    assert client.get("/history/").get_json()["records"] == []

    client.post("/keys/issue", json={"barcode": "123456789"})
    records = client.get("/history/").get_json()["records"]
    assert [r["userName"] for r in records] == ["Ivan Petrov"]


def test_export_csv(admin_client) -> None:
    admin_client.post("/keys/issue", json={"barcode": "123456789", "card_code": "EMP001"})
    response = admin_client.get("/history/export/csv")
    assert response.status_code == 200
    assert response.headers["Content-Type"].startswith("text/csv")
    text = response.get_data(as_text=True)
    assert text.lstrip("\ufeff").startswith("DATE,ACTION,KEY,BARCODE,USER")
    assert "Взят,Офис 101,123456789,Ivan Petrov" in text


def test_export_xlsx(admin_client) -> None:
    admin_client.post("/keys/issue", json={"barcode": "123456789", "card_code": "EMP001"})
    response = admin_client.get("/history/export/xlsx")
    assert response.status_code == 200

    ws = load_workbook(BytesIO(response.data)).active
    rows = list(ws.iter_rows(values_only=True))
    assert rows[0] == ("DATE", "ACTION", "KEY", "BARCODE", "USER")
    assert rows[1][1:] == ("Взят", "Офис 101", "123456789", "Ivan Petrov")


def test_export_requires_admin(user_client) -> None:
    assert user_client.get("/history/export/csv").status_code == 403


def test_offset_timestamps_are_normalised_to_utc():
    aware = HistoryRecord.from_dict({
        "id": "a", "keyName": "Офис 101", "keyBarcode": "1", "action": "taken",
        "userName": "A", "timestamp": "2024-05-01T12:00:00+03:00",
    })
    zulu = HistoryRecord.from_dict({
        "id": "z", "keyName": "Офис 101", "keyBarcode": "1", "action": "returned",
        "userName": "A", "timestamp": "2024-05-01T09:30:00Z",
    })
    assert aware.timestamp == T0
    assert aware.timestamp.tzinfo is None

    log = AuditLog()
    log.append(aware)
    log.append(zulu)
    log.append(_record("Офис 101", "1", "taken", "A", 60))
    assert [r.id for r in log.query()] == ["1-60", "z", "a"]
