from flask import Blueprint, current_app, jsonify, request

from ..exceptions import ValidationError
from ..services.loan_service import LoanService
from ..utils.dates import require_date, today

bp = Blueprint("loans", __name__, url_prefix="/loans")


def _payload():
    return request.get_json(silent=True) or request.form


def _field(data, name):
    """Stripped text of a form/json field; JSON numbers are accepted as IDs."""
    value = data.get(name)
    return "" if value is None else str(value).strip()


def _action_date(raw):
    if not raw:
        return today(current_app.config["LIBRARY_TIMEZONE"])
    return require_date(raw, "date")


@bp.post("/borrow")
def borrow():
    """Lend an item: form/json fields user_id, item_id and optional date.
    An item that is out puts the user on its waitlist (202)."""
    data = _payload()
    user_id = _field(data, "user_id")
    item_id = _field(data, "item_id")
    if not user_id or not item_id:
        raise ValidationError("Error: user_id and item_id are required")

    lid = LoanService.borrow(user_id, item_id, on=_action_date(data.get("date")))
    if lid is None:
        return jsonify({"waitlisted": True, "item_id": item_id}), 202
    current_app.logger.info("Borrow accepted: loan %s", lid)
    return jsonify({"loan_id": lid}), 201


@bp.post("/return")
def return_item():
    """Close a loan: form/json field loan_id and optional date."""
    data = _payload()
    loan_id = _field(data, "loan_id")
    if not loan_id:
        raise ValidationError("Error: loan_id is required")

    loan = LoanService.return_item(loan_id, on=_action_date(data.get("date")))
    return jsonify(loan)


@bp.post("/pay-fine")
def pay_fine():
    data = _payload()
    user_id = _field(data, "user_id")
    amount = _field(data, "amount")
    if not user_id or not amount:
        raise ValidationError("Error: user_id and amount are required")

    balance = LoanService.pay_fine(user_id, amount)
    return jsonify({"user_id": user_id, "fine_balance": str(balance)})


@bp.get("/users/<user_id>")
def user_loans(user_id):
    as_of = _action_date(request.args.get("date"))
    return jsonify({"loans": LoanService.loans_for_user(user_id, as_of)})


@bp.get("/items/<item_id>/waitlist")
def item_waitlist(item_id):
    return jsonify({"item_id": item_id, "waitlist": LoanService.waitlist_for_item(item_id)})
