from decimal import Decimal

import pytest
from django.urls import reverse

from trust_core.models import OrganisationMembership, User
from .utils import account, make_scheme, make_tenant


@pytest.fixture
def tenant(db):
    organisation, user = make_tenant()
    scheme, lots = make_scheme(organisation, lots=2)
    return organisation, user, scheme, lots


@pytest.fixture
def staff_client(client, tenant):
    client.force_login(tenant[1])
    return client


def post_json(client, url, payload):
    return client.post(url, payload, content_type="application/json")


def test_post_entry_and_read_balance(staff_client, tenant):
    _, _, scheme, _ = tenant
    trust, income = account(scheme, "1100"), account(scheme, "4100")

    response = post_json(staff_client, reverse("trust_core:entry-post", args=[scheme.pk]), {
        "postings": [
            {"account_id": trust.pk, "side": "debit", "amount": "120.00"},
            {"account_id": income.pk, "side": "credit", "amount": "120.00"},
        ],
        "posting_date": "2025-09-01",
        "reference_type": "receipt",
    })

    assert response.status_code == 200
    assert response.json()["ok"] is True

    balance = staff_client.get(
        reverse("trust_core:account-balance", args=[scheme.pk, trust.pk]), {"as_of": "2025-09-30"}
    ).json()
    assert Decimal(balance["balance"]) == Decimal("120.00")


def test_unbalanced_entry_is_a_bad_request(staff_client, tenant):
    _, _, scheme, _ = tenant

    response = post_json(staff_client, reverse("trust_core:entry-post", args=[scheme.pk]), {
        "postings": [
            {"account_id": account(scheme, "1100").pk, "debit": "100.00"},
            {"account_id": account(scheme, "4100").pk, "credit": "90.00"},
        ],
        "posting_date": "2025-09-01",
        "reference_type": "receipt",
    })

    assert response.status_code == 400
    assert response.json()["ok"] is False
    assert "100.00" in response.json()["error"]


def test_opening_balance_workflow(staff_client, tenant):
    _, _, scheme, lots = tenant
    apply_url = reverse("trust_core:opening-balance-apply", args=[scheme.pk])
    payload = {
        "balances": [
            {"lot_id": lots[0].pk, "amount": "150.00"},
            {"lot_id": lots[1].pk, "amount": "-40.00"},
        ],
        "balance_date": "2025-07-01",
    }

    applied = post_json(staff_client, apply_url, payload)
    assert applied.status_code == 200
    assert applied.json()["applied"] == 2

    again = post_json(staff_client, apply_url, payload)
    assert again.status_code == 409

    status = staff_client.get(reverse("trust_core:opening-balance-status", args=[scheme.pk])).json()
    assert status["has_opening_balances"] is True
    assert Decimal(status["total_amount"]) == Decimal("110.00")

    lot_rows = staff_client.get(reverse("trust_core:opening-balance-lots", args=[scheme.pk])).json()
    assert [row["opening_balance"] for row in lot_rows["lots"]] == ["150.00", "-40.00"]

    cleared = post_json(staff_client, reverse("trust_core:opening-balance-clear", args=[scheme.pk]), {})
    assert cleared.json()["cleared"] == 2

    tb = staff_client.get(
        reverse("trust_core:trial-balance", args=[scheme.pk]), {"as_of": "2025-07-31"}
    ).json()
    assert tb["is_balanced"] is True
    assert all(Decimal(row["balance"]) == 0 for row in tb["rows"])


def test_reseed_flag_replaces_balances(staff_client, tenant):
    _, _, scheme, lots = tenant
    apply_url = reverse("trust_core:opening-balance-apply", args=[scheme.pk])
    post_json(staff_client, apply_url, {"balances": [{"lot_id": lots[0].pk, "amount": "10.00"}]})

    response = post_json(staff_client, apply_url, {
        "balances": [{"lot_id": lots[1].pk, "amount": "25.00"}],
        "reseed": True,
    })

    assert response.status_code == 200
    lot_balance = staff_client.get(
        reverse("trust_core:lot-balance", args=[scheme.pk, lots[0].pk])
    ).json()
    assert Decimal(lot_balance["balance"]) == Decimal("0.00")


def test_clear_without_opening_balances_conflicts(staff_client, tenant):
    _, _, scheme, _ = tenant

    response = post_json(staff_client, reverse("trust_core:opening-balance-clear", args=[scheme.pk]), {})

    assert response.status_code == 409


def test_other_tenant_scheme_is_not_found(client, tenant):
    _, _, scheme, _ = tenant
    _, outsider = make_tenant("Ridge Strata", username="outsider")
    client.force_login(outsider)

    response = client.get(reverse("trust_core:account-list", args=[scheme.pk]))

    assert response.status_code == 404
    assert response.json() == {"ok": False, "error": f"Scheme {scheme.pk} not found"}


def test_user_without_organisation_is_forbidden(client, tenant):
    _, _, scheme, _ = tenant
    client.force_login(User.objects.create_user(username="drifter", password="pw"))

    response = client.get(reverse("trust_core:trial-balance", args=[scheme.pk]))

    assert response.status_code == 403


def test_write_views_only_accept_post(staff_client, tenant):
    _, _, scheme, _ = tenant

    response = staff_client.get(reverse("trust_core:entry-post", args=[scheme.pk]))

    assert response.status_code == 405


def test_invalid_json_body_is_a_bad_request(staff_client, tenant):
    _, _, scheme, _ = tenant

    response = staff_client.post(
        reverse("trust_core:entry-post", args=[scheme.pk]),
        "{not json",
        content_type="application/json",
    )

    assert response.status_code == 400


def test_account_upsert_and_deactivate(staff_client, tenant):
    _, _, scheme, _ = tenant

    created = post_json(staff_client, reverse("trust_core:account-upsert", args=[scheme.pk]), {
        "code": "1110", "ac_type": "asset", "name": "Petty cash",
    }).json()
    assert created["account"]["scheme_id"] == scheme.pk

    deactivated = post_json(
        staff_client, reverse("trust_core:account-deactivate", args=[created["account"]["id"]]), {}
    ).json()
    assert deactivated["account"]["is_active"] is False

    listing = staff_client.get(reverse("trust_core:account-list", args=[scheme.pk])).json()
    assert "1110" not in [a["code"] for a in listing["accounts"]]


def test_revoked_member_cannot_read_tenant_data(client, tenant):
    organisation, user, scheme, _ = tenant
    OrganisationMembership.objects.filter(user=user, organisation=organisation).update(is_active=False)
    client.force_login(user)

    trial_balance = client.get(reverse("trust_core:trial-balance", args=[scheme.pk]))
    accounts = client.get(reverse("trust_core:account-list", args=[scheme.pk]))

    assert trial_balance.status_code == 403
    assert accounts.status_code == 403
    assert accounts.json()["ok"] is False


def test_session_switch_to_foreign_organisation_is_ignored(client, tenant):
    _, _, scheme, _ = tenant
    _, outsider = make_tenant("Ridge Strata", username="outsider")
    client.force_login(outsider)
    session = client.session
    session["active_organisation_id"] = scheme.organisation_id
    session.save()

    response = client.get(reverse("trust_core:account-list", args=[scheme.pk]))

    assert response.status_code == 403


def test_oversized_amount_is_a_bad_request(staff_client, tenant):
    _, _, scheme, _ = tenant

    response = post_json(staff_client, reverse("trust_core:entry-post", args=[scheme.pk]), {
        "postings": [
            {"account_id": account(scheme, "1100").pk, "debit": "1e30"},
            {"account_id": account(scheme, "4100").pk, "credit": "1e30"},
        ],
        "posting_date": "2025-09-01",
        "reference_type": "receipt",
    })

    assert response.status_code == 400
    assert "too large" in response.json()["error"]


def test_account_update_without_fund_type_keeps_it(staff_client, tenant):
    _, _, scheme, _ = tenant
    save_url = reverse("trust_core:account-upsert", args=[scheme.pk])
    created = post_json(staff_client, save_url, {
        "code": "1210", "ac_type": "asset", "name": "Capital works cash", "fund_type": "capital_works",
    }).json()["account"]

    updated = post_json(staff_client, save_url, {
        "account_id": created["id"], "code": "1210", "ac_type": "asset", "name": "Sinking fund cash",
    }).json()["account"]

    assert updated["name"] == "Sinking fund cash"
    assert updated["fund_type"] == "capital_works"
