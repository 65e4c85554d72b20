from flask import Blueprint, Response, current_app, jsonify, request

from ..exceptions import NotFoundError
from ..services.common import _store, user_from_dict
from ..services.loan_service import LoanService
from ..services.report_manager import ReportManager
from ..utils.dates import fmt_date, require_date, today

bp = Blueprint("reports", __name__, url_prefix="/reports")


def _report_date(raw=None):
    """`date` query value as a date; today in the library's timezone when absent."""
    raw = raw if raw is not None else request.args.get("date")
    if not raw:
        return today(current_app.config["LIBRARY_TIMEZONE"])
    return require_date(raw, "date")


def _manager():
    """Reports over a fresh snapshot of the loan history."""
    return ReportManager(
        LoanService.records(store=_store()),
        reports_dir=current_app.config["REPORTS_DIR"],
    )


@bp.get("/activity")
def activity():
    """Top borrowers and most-borrowed items over the whole loan history, highest count first."""
    activity = _manager().activity
    borrowers = sorted(activity.top_borrowers().items(), key=lambda x: x[1], reverse=True)
    items = sorted(activity.most_borrowed_items().items(), key=lambda x: x[1], reverse=True)
    return jsonify({
        "top_borrowers": [
            {"user_id": u.user_id, "username": u.username, "count": n} for u, n in borrowers
        ],
        "most_borrowed_items": [{"item": label, "count": n} for label, n in items],
    })


@bp.get("/fines")
def fines():
    """Per-user fine totals with the per-material breakdown."""
    as_of = _report_date()
    fines = _manager().fines
    rows = []
    for user, total in fines.total_fines_for_all_users(as_of).items():
        by_type = fines.fines_by_material_type(user, as_of)
        rows.append({
            "user_id": user.user_id,
            "username": user.username,
            "total": str(total),
            "by_material_type": {str(t): str(v) for t, v in by_type.items()},
        })
    rows.sort(key=lambda r: r["username"])
    return jsonify({"date": fmt_date(as_of), "fines": rows})


@bp.get("/fines.csv")
def fines_csv():
    as_of = _report_date()
    text = _manager().exporter.generate_fines_report(as_of)
    return Response(
        text,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename=fines_{fmt_date(as_of)}.csv"},
    )


@bp.post("/fines/export")
def export_fines():
    """Write the fines CSV for the given date under REPORTS_DIR."""
    payload = request.get_json(silent=True) or request.form
    as_of = _report_date(payload.get("date") or "")
    path = _manager().export_fines_csv(as_of)
    current_app.logger.info("Fines report exported: %s", path)
    return jsonify({"date": fmt_date(as_of), "path": str(path)}), 201


@bp.get("/users/<user_id>/overdue")
def user_overdue(user_id):
    """Loans of one user that are overdue on the report date."""
    st = _store()
    user = user_from_dict(st.users.get(user_id))
    if user is None:
        raise NotFoundError(f"Error: user with ID '{user_id}' not found")
    as_of = _report_date()
    overdue = _manager().activity.overdue_items_for_user(user, as_of)
    return jsonify({
        "date": fmt_date(as_of),
        "user_id": user.user_id,
        "overdue": [
            {
                "item": r.item_label,
                "borrow_date": fmt_date(r.borrow_date),
                "due_date": fmt_date(r.due_date),
                "overdue_days": r.overdue_days(as_of),
                "fine": str(r.get_fine(as_of)),
            }
            for r in overdue
        ],
    })
