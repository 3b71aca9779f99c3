from django.urls import path

from . import views

app_name = "trust_core"

urlpatterns = [
    # account registry
    path("schemes/<int:scheme_id>/accounts/", views.account_list_view, name="account-list"),
    path("schemes/<int:scheme_id>/accounts/save/", views.account_upsert_view, name="account-upsert"),
    path("accounts/<int:account_id>/deactivate/", views.account_deactivate_view, name="account-deactivate"),
    # ledger
    path("schemes/<int:scheme_id>/entries/", views.entry_list_view, name="entry-list"),
    path("schemes/<int:scheme_id>/entries/post/", views.post_entry_view, name="entry-post"),
    path("entries/<int:entry_id>/reverse/", views.reverse_entry_view, name="entry-reverse"),
    # opening balances
    path("schemes/<int:scheme_id>/opening-balances/", views.opening_balance_status_view, name="opening-balance-status"),
    path("schemes/<int:scheme_id>/opening-balances/lots/", views.opening_balance_lots_view, name="opening-balance-lots"),
    path("schemes/<int:scheme_id>/opening-balances/apply/", views.apply_opening_balances_view, name="opening-balance-apply"),
    path("schemes/<int:scheme_id>/opening-balances/clear/", views.clear_opening_balances_view, name="opening-balance-clear"),
    # balances
    path("schemes/<int:scheme_id>/accounts/<int:account_id>/balance/", views.account_balance_view, name="account-balance"),
    path("schemes/<int:scheme_id>/accounts/<int:account_id>/ledger/", views.account_ledger_view, name="account-ledger"),
    path("schemes/<int:scheme_id>/lots/<int:lot_id>/balance/", views.lot_balance_view, name="lot-balance"),
    path("schemes/<int:scheme_id>/trial-balance/", views.trial_balance_view, name="trial-balance"),
    # financial years and ownership
    path("schemes/<int:scheme_id>/financial-years/", views.financial_year_create_view, name="financial-year-create"),
    path("lots/<int:lot_id>/transfer/", views.transfer_ownership_view, name="lot-transfer"),
]
