import json
import logging
from functools import wraps

from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from .exceptions import AlreadyAppliedError, NotAppliedError, NotFoundError, TrustLedgerError
from .services.accounts import UNCHANGED
from .services import (
    apply_opening_balances,
    check_status,
    clear_opening_balances,
    create_financial_year,
    deactivate_account,
    get_account_balance,
    get_account_ledger,
    get_entries_for_scheme,
    get_lot_balance,
    get_trial_balance,
    list_active_accounts,
    lots_for_opening_balances,
    post_entry,
    reverse_entry,
    transfer_ownership,
    upsert_account,
)

logger = logging.getLogger(__name__)


def _error_status(exc):
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, (AlreadyAppliedError, NotAppliedError)):
        return 409
    return 400


def _error_message(exc):
    if isinstance(exc, ValidationError):
        return "; ".join(exc.messages)
    return str(exc)


def ledger_view(view):
    """
    Wrap a view so every answer is a result object:
    {"ok": true, ...} or {"ok": false, "error": "..."}.
    """

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if getattr(request, "organisation", None) is None:
            return JsonResponse({"ok": False, "error": "No active organisation"}, status=403)
        # call the service and handle response or errors
        try:
            payload = view(request, *args, **kwargs)
        except (ValidationError, TrustLedgerError) as e:
            logger.info("%s rejected: %s", view.__name__, _error_message(e))
            return JsonResponse({"ok": False, "error": _error_message(e)}, status=_error_status(e))
        return JsonResponse({"ok": True, **payload})

    return wrapper


def _body(request):
    if request.content_type == "application/json":
        try:
            return json.loads(request.body or b"{}")
        except ValueError:
            raise ValidationError("Request body is not valid JSON")
    return request.POST.dict()


def _date_range(params):
    start, end = params.get("start_date"), params.get("end_date")
    if start is None and end is None:
        return None
    return (start, end)


# ---------- serialisers ----------
def _account_json(account):
    return {
        "id": account.pk,
        "code": account.code,
        "name": account.name,
        "ac_type": account.ac_type,
        "normal_balance": account.normal_balance,
        "fund_type": account.fund_type,
        "scheme_id": account.scheme_id,
        "is_system": account.is_system,
        "is_active": account.is_active,
    }


def _entry_json(entry):
    return {
        "id": entry.pk,
        "date": entry.date.isoformat(),
        "reference_type": entry.reference_type,
        "reference_id": entry.reference_id,
        "description": entry.description,
        "reverses_id": entry.reverses_id,
        "lines": [
            {
                "account_id": line.account_id,
                "account_code": line.account.code,
                "lot_id": line.lot_id,
                "description": line.description,
                "debit": str(line.debit),
                "credit": str(line.credit),
            }
            for line in entry.lines.all()
        ],
    }


# ---------- Account registry ----------
@require_GET
@ledger_view
def account_list_view(request, scheme_id):
    accounts = list_active_accounts(
        scheme_id, organisation=request.organisation, ac_type=request.GET.get("ac_type")
    )
    return {"accounts": [_account_json(a) for a in accounts]}


@require_POST
@ledger_view
def account_upsert_view(request, scheme_id):
    data = _body(request)
    account = upsert_account(
        scheme_id,
        data.get("code"),
        data.get("ac_type"),
        data.get("is_active", True) not in (False, "false", "0"),
        name=data.get("name"),
        organisation=request.organisation,
        fund_type=(data.get("fund_type") or None) if "fund_type" in data else UNCHANGED,
        parent_id=data.get("parent_id"),
        account_id=data.get("account_id"),
        user=request.user,
    )
    return {"account": _account_json(account)}


@require_POST
@ledger_view
def account_deactivate_view(request, account_id):
    account = deactivate_account(account_id, organisation=request.organisation, user=request.user)
    return {"account": _account_json(account)}


# ---------- Ledger store ----------
@require_POST
@ledger_view
def post_entry_view(request, scheme_id):
    data = _body(request)
    entry_id = post_entry(
        scheme_id,
        data.get("postings"),
        data.get("posting_date"),
        data.get("reference_type"),
        data.get("reference_id"),
        description=data.get("description", ""),
        organisation=request.organisation,
        user=request.user,
    )
    return {"entry_id": entry_id}


@require_POST
@ledger_view
def reverse_entry_view(request, entry_id):
    data = _body(request)
    reversal = reverse_entry(
        entry_id,
        posting_date=data.get("posting_date"),
        description=data.get("description"),
        organisation=request.organisation,
        user=request.user,
    )
    return {"entry_id": reversal.pk, "reverses_id": entry_id}


@require_GET
@ledger_view
def entry_list_view(request, scheme_id):
    entries = get_entries_for_scheme(
        scheme_id,
        _date_range(request.GET),
        reference_type=request.GET.get("reference_type"),
        lot_id=request.GET.get("lot_id"),
        organisation=request.organisation,
    )
    return {"entries": [_entry_json(e) for e in entries]}


# ---------- Opening balances ----------
@require_GET
@ledger_view
def opening_balance_status_view(request, scheme_id):
    status = check_status(scheme_id, organisation=request.organisation)
    return {
        "has_opening_balances": status.has_opening_balances,
        "count": status.count,
        "total_amount": str(status.total_amount),
    }


@require_GET
@ledger_view
def opening_balance_lots_view(request, scheme_id):
    lots = lots_for_opening_balances(scheme_id, organisation=request.organisation)
    for row in lots:
        if row["opening_balance"] is not None:
            row["opening_balance"] = str(row["opening_balance"])
    return {"lots": lots}


@require_POST
@ledger_view
def apply_opening_balances_view(request, scheme_id):
    data = _body(request)
    created = apply_opening_balances(
        scheme_id,
        data.get("balances"),
        data.get("balance_date"),
        reseed=data.get("reseed") in (True, "true", "1"),
        organisation=request.organisation,
        user=request.user,
    )
    return {
        "applied": len(created),
        "entry_ids": [ob.journal_entry_id for ob in created],
    }


@require_POST
@ledger_view
def clear_opening_balances_view(request, scheme_id):
    cleared = clear_opening_balances(
        scheme_id, organisation=request.organisation, user=request.user
    )
    return {"cleared": cleared}


# ---------- Balances ----------
@require_GET
@ledger_view
def account_balance_view(request, scheme_id, account_id):
    as_of = request.GET.get("as_of")
    balance = get_account_balance(scheme_id, account_id, as_of, organisation=request.organisation)
    return {"account_id": account_id, "as_of": as_of, "balance": str(balance)}


@require_GET
@ledger_view
def lot_balance_view(request, scheme_id, lot_id):
    as_of = request.GET.get("as_of")
    balance = get_lot_balance(scheme_id, lot_id, as_of, organisation=request.organisation)
    return {"lot_id": lot_id, "as_of": as_of, "balance": str(balance)}


@require_GET
@ledger_view
def trial_balance_view(request, scheme_id):
    tb = get_trial_balance(scheme_id, request.GET.get("as_of"), organisation=request.organisation)
    return {
        "as_of": tb.as_of_date.isoformat(),
        "is_balanced": tb.is_balanced,
        "total_debits": str(tb.total_debits),
        "total_credits": str(tb.total_credits),
        "rows": [
            {
                "account_id": r.account_id,
                "code": r.code,
                "name": r.name,
                "ac_type": r.ac_type,
                "debits": str(r.total_debits),
                "credits": str(r.total_credits),
                "balance": str(r.balance),
            }
            for r in tb.rows
        ],
    }


@require_GET
@ledger_view
def account_ledger_view(request, scheme_id, account_id):
    rows = get_account_ledger(
        scheme_id, account_id, _date_range(request.GET), organisation=request.organisation
    )
    return {
        "rows": [
            {
                "date": r.date.isoformat(),
                "entry_id": r.entry_id,
                "reference_type": r.reference_type,
                "description": r.description,
                "debit": str(r.debit),
                "credit": str(r.credit),
                "balance": str(r.balance),
            }
            for r in rows
        ]
    }


# ---------- Financial years / ownership ----------
@require_POST
@ledger_view
def financial_year_create_view(request, scheme_id):
    data = _body(request)
    year = create_financial_year(
        scheme_id,
        data.get("year_label"),
        data.get("start_date"),
        data.get("end_date"),
        organisation=request.organisation,
        user=request.user,
    )
    return {"financial_year_id": year.pk, "is_current": year.is_current}


@require_POST
@ledger_view
def transfer_ownership_view(request, lot_id):
    data = _body(request)
    ownership = transfer_ownership(
        lot_id,
        data.get("owner_id"),
        data.get("start_date"),
        organisation=request.organisation,
        user=request.user,
    )
    return {"ownership_id": ownership.pk, "owner_id": ownership.owner_id}
