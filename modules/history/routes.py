# -*- coding: utf-8 -*-

from datetime import datetime
import csv
import io

from flask import jsonify, make_response, request, send_file
from flask_login import current_user, login_required
from openpyxl import Workbook

from extensions import current_ledger
from permissions import can_history_view_all, require_role

from . import bp
from .models import ACTION_LABELS

EXPORT_HEADER = ["DATE", "ACTION", "KEY", "BARCODE", "USER"]


def _visible_history():
    """
    Журнал с учётом фильтра ``q``.
    Администратор видит всё, пользователь — только свои операции.
    """
    q = (request.args.get("q") or "").strip() or None
    user_name = None if can_history_view_all() else current_user.display_name
    return current_ledger().query_history(filter_text=q, user_name=user_name), q


def _export_rows(records):
    for r in records:
        yield [
            r.timestamp.isoformat(sep=" ") if r.timestamp else "",
            ACTION_LABELS.get(r.action, r.action),
            r.key_name,
            r.key_barcode,
            r.user_name,
        ]


# ---------- Журнал операций ----------
@bp.route("/")
@login_required
def list_history():
    records, q = _visible_history()
    items = [r.to_dict() for r in records]
    message = None
    if not items:
        message = "Ничего не найдено" if q else "История операций пуста"
    return jsonify(ok=True, q=q, records=items, message=message)


# ---------- Экспорт CSV ----------
@bp.route("/export/csv")
@require_role("admin")
def export_csv():
    records, _ = _visible_history()
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(EXPORT_HEADER)
    writer.writerows(_export_rows(records))

    data = ("\ufeff" + out.getvalue()).encode("utf-8")
    resp = make_response(data)
    resp.headers["Content-Type"] = "text/csv; charset=utf-8"
    resp.headers["Content-Disposition"] = f"attachment; filename=key_history_{datetime.utcnow():%Y%m%d_%H%M%S}.csv"
    return resp


# ---------- Экспорт Excel ----------
@bp.route("/export/xlsx")
@require_role("admin")
def export_xlsx():
    records, _ = _visible_history()
    wb = Workbook()
    ws = wb.active
    ws.title = "History"
    ws.append(EXPORT_HEADER)
    for row in _export_rows(records):
        ws.append(row)

    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    return send_file(
        buf,
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        as_attachment=True,
        download_name=f"key_history_{datetime.utcnow():%Y%m%d_%H%M%S}.xlsx",
    )
