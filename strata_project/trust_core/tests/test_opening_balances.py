import datetime
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.test import TestCase, TransactionTestCase, override_settings

from trust_core.models import JournalEntry, Lot, LotOwnership, OpeningBalance, Owner
from trust_core.services import (
    apply_opening_balances,
    check_status,
    clear_opening_balances,
    create_financial_year,
    get_account_balance,
    get_lot_balance,
    get_trial_balance,
    lots_for_opening_balances,
)
from ..exceptions import AlreadyAppliedError, InvalidAccountError, NotAppliedError, NotFoundError
from .utils import account, make_scheme, make_tenant

JULY_1 = datetime.date(2025, 7, 1)


class OpeningBalanceTests(TestCase):
    def setUp(self):
        self.organisation, self.user = make_tenant()
        self.scheme, self.lots = make_scheme(self.organisation, lots=3)
        self.receivable = account(self.scheme, "1300")
        self.equity = account(self.scheme, "3900")

    def apply(self, balances, **kwargs):
        kwargs.setdefault("organisation", self.organisation)
        kwargs.setdefault("user", self.user)
        return apply_opening_balances(self.scheme.pk, balances, JULY_1, **kwargs)

    def test_status_is_empty_before_anything_is_applied(self):
        status = check_status(self.scheme.pk)

        self.assertFalse(status.has_opening_balances)
        self.assertEqual(status.count, 0)
        self.assertEqual(status.total_amount, Decimal("0.00"))

    def test_apply_posts_one_entry_per_lot(self):
        created = self.apply([
            {"lot_id": self.lots[0].pk, "amount": "150.00"},
            {"lot_id": self.lots[1].pk, "amount": "-40.00"},
        ])

        self.assertEqual(len(created), 2)
        status = check_status(self.scheme.pk)
        self.assertTrue(status.has_opening_balances)
        self.assertEqual(status.count, 2)
        self.assertEqual(status.total_amount, Decimal("110.00"))

        self.assertEqual(get_lot_balance(self.scheme.pk, self.lots[0].pk, JULY_1), Decimal("150.00"))
        self.assertEqual(get_lot_balance(self.scheme.pk, self.lots[1].pk, JULY_1), Decimal("-40.00"))
        self.assertEqual(get_lot_balance(self.scheme.pk, self.lots[2].pk, JULY_1), Decimal("0.00"))
        self.assertEqual(get_account_balance(self.scheme.pk, self.receivable.pk, JULY_1), Decimal("110.00"))
        self.assertEqual(get_account_balance(self.scheme.pk, self.equity.pk, JULY_1), Decimal("110.00"))
        self.assertTrue(get_trial_balance(self.scheme.pk, JULY_1).is_balanced)

    def test_positive_balance_debits_receivable_for_the_lot(self):
        ob = self.apply([{"lot_id": self.lots[0].pk, "amount": "150.00"}])[0]

        entry = ob.journal_entry
        self.assertEqual(entry.reference_type, "opening_balance")
        self.assertEqual(entry.reference_id, str(self.lots[0].pk))
        self.assertEqual(entry.date, JULY_1)
        lot_line = entry.lines.get(lot=self.lots[0])
        self.assertEqual(lot_line.account, self.receivable)
        self.assertEqual(lot_line.debit, Decimal("150.00"))
        self.assertEqual(entry.lines.get(account=self.equity).credit, Decimal("150.00"))

    def test_zero_amounts_are_skipped(self):
        created = self.apply([
            {"lot_id": self.lots[0].pk, "amount": "0"},
            {"lot_id": self.lots[1].pk, "amount": "25.00"},
        ])

        self.assertEqual([ob.lot_id for ob in created], [self.lots[1].pk])
        self.assertEqual(check_status(self.scheme.pk).count, 1)

    def test_all_zero_input_is_rejected(self):
        with self.assertRaises(ValidationError):
            self.apply([{"lot_id": lot.pk, "amount": 0} for lot in self.lots])
        with self.assertRaises(ValidationError):
            self.apply([])

    def test_duplicate_lot_is_rejected(self):
        with self.assertRaises(ValidationError):
            self.apply([
                {"lot_id": self.lots[0].pk, "amount": "10.00"},
                {"lot_id": self.lots[0].pk, "amount": "20.00"},
            ])
        self.assertFalse(JournalEntry.objects.exists())

    def test_applying_twice_is_rejected(self):
        self.apply([{"lot_id": self.lots[0].pk, "amount": "150.00"}])

        with self.assertRaises(AlreadyAppliedError):
            self.apply([{"lot_id": self.lots[1].pk, "amount": "10.00"}])

        self.assertEqual(check_status(self.scheme.pk).count, 1)

    def test_clear_restores_every_balance(self):
        self.apply([
            {"lot_id": self.lots[0].pk, "amount": "150.00"},
            {"lot_id": self.lots[1].pk, "amount": "-40.00"},
        ])

        cleared = clear_opening_balances(self.scheme.pk, organisation=self.organisation, user=self.user)

        self.assertEqual(cleared, 2)
        self.assertFalse(check_status(self.scheme.pk).has_opening_balances)
        for lot in self.lots:
            self.assertEqual(get_lot_balance(self.scheme.pk, lot.pk, JULY_1), Decimal("0.00"))
            self.assertEqual(get_lot_balance(self.scheme.pk, lot.pk, "2026-01-01"), Decimal("0.00"))
        self.assertEqual(get_account_balance(self.scheme.pk, self.receivable.pk, JULY_1), Decimal("0.00"))

    def test_clear_appends_reversals_and_keeps_history(self):
        self.apply([{"lot_id": self.lots[0].pk, "amount": "150.00"}])

        clear_opening_balances(self.scheme.pk)

        self.assertEqual(JournalEntry.objects.filter(reference_type="opening_balance").count(), 1)
        self.assertEqual(JournalEntry.objects.filter(reference_type="reversal").count(), 1)
        ob = OpeningBalance.objects.get()
        self.assertIsNotNone(ob.cleared_at)
        self.assertEqual(ob.reversal_entry.reverses, ob.journal_entry)

    def test_clear_without_balances_is_rejected(self):
        with self.assertRaises(NotAppliedError):
            clear_opening_balances(self.scheme.pk)

    def test_reapply_after_clear(self):
        self.apply([{"lot_id": self.lots[0].pk, "amount": "150.00"}])
        clear_opening_balances(self.scheme.pk)

        self.apply([{"lot_id": self.lots[0].pk, "amount": "175.00"}])

        status = check_status(self.scheme.pk)
        self.assertEqual(status.count, 1)
        self.assertEqual(status.total_amount, Decimal("175.00"))
        self.assertEqual(OpeningBalance.objects.filter(lot=self.lots[0]).count(), 2)
        self.assertEqual(get_lot_balance(self.scheme.pk, self.lots[0].pk, JULY_1), Decimal("175.00"))

    def test_reseed_replaces_existing_balances(self):
        self.apply([
            {"lot_id": self.lots[0].pk, "amount": "150.00"},
            {"lot_id": self.lots[1].pk, "amount": "-40.00"},
        ])

        self.apply([{"lot_id": self.lots[2].pk, "amount": "60.00"}], reseed=True)

        status = check_status(self.scheme.pk)
        self.assertEqual(status.count, 1)
        self.assertEqual(status.total_amount, Decimal("60.00"))
        self.assertEqual(get_lot_balance(self.scheme.pk, self.lots[0].pk, JULY_1), Decimal("0.00"))

    def test_inactive_lot_is_rejected(self):
        Lot.objects.filter(pk=self.lots[2].pk).update(status="inactive")

        with self.assertRaises(ValidationError):
            self.apply([{"lot_id": self.lots[2].pk, "amount": "10.00"}])

    def test_lot_of_another_scheme_is_not_found(self):
        _, other_lots = make_scheme(self.organisation, "SP200", lots=1)

        with self.assertRaises(NotFoundError):
            self.apply([{"lot_id": other_lots[0].pk, "amount": "10.00"}])

    @override_settings(TRUST_OPENING_BALANCE_ACCOUNT_CODE="3999")
    def test_missing_equity_account_is_rejected(self):
        with self.assertRaises(InvalidAccountError):
            self.apply([{"lot_id": self.lots[0].pk, "amount": "10.00"}])

    def test_balance_date_defaults_to_current_year_start(self):
        create_financial_year(self.scheme.pk, "2025/26", "2025-07-01", "2026-06-30")

        ob = apply_opening_balances(self.scheme.pk, [{"lot_id": self.lots[0].pk, "amount": "5.00"}])[0]

        self.assertEqual(ob.balance_date, JULY_1)
        self.assertEqual(ob.journal_entry.date, JULY_1)

    def test_lots_listing_shows_owner_and_live_balance(self):
        owner = Owner.objects.create(organisation=self.organisation, first_name="Ada", last_name="Nguyen")
        LotOwnership.objects.create(lot=self.lots[0], owner=owner, ownership_start_date=JULY_1)
        self.apply([{"lot_id": self.lots[0].pk, "amount": "150.00"}])

        rows = {row["lot_id"]: row for row in lots_for_opening_balances(self.scheme.pk)}

        self.assertEqual(rows[self.lots[0].pk]["owner_name"], "Ada Nguyen")
        self.assertEqual(rows[self.lots[0].pk]["opening_balance"], Decimal("150.00"))
        self.assertIsNone(rows[self.lots[1].pk]["owner_name"])
        self.assertIsNone(rows[self.lots[1].pk]["opening_balance"])


class OpeningBalanceAtomicityTests(TransactionTestCase):
    """Failures must leave the ledger exactly as it was, across every lot."""

    def setUp(self):
        self.organisation, self.user = make_tenant()
        self.scheme, self.lots = make_scheme(self.organisation, lots=10)

    def test_failure_on_last_lot_rolls_back_all_lots(self):
        Lot.objects.filter(pk=self.lots[-1].pk).update(status="inactive")
        balances = [{"lot_id": lot.pk, "amount": "100.00"} for lot in self.lots]

        with self.assertRaises(ValidationError):
            apply_opening_balances(self.scheme.pk, balances, JULY_1)

        self.assertFalse(JournalEntry.objects.exists())
        self.assertFalse(OpeningBalance.objects.exists())
        self.assertFalse(check_status(self.scheme.pk).has_opening_balances)
        for lot in self.lots:
            self.assertEqual(get_lot_balance(self.scheme.pk, lot.pk, JULY_1), Decimal("0.00"))

    def test_failed_reseed_keeps_previous_balances(self):
        apply_opening_balances(self.scheme.pk, [{"lot_id": self.lots[0].pk, "amount": "150.00"}], JULY_1)
        Lot.objects.filter(pk=self.lots[1].pk).update(status="inactive")

        with self.assertRaises(ValidationError):
            apply_opening_balances(
                self.scheme.pk, [{"lot_id": self.lots[1].pk, "amount": "10.00"}], JULY_1, reseed=True
            )

        status = check_status(self.scheme.pk)
        self.assertEqual(status.count, 1)
        self.assertEqual(status.total_amount, Decimal("150.00"))
        self.assertEqual(JournalEntry.objects.count(), 1)


@pytest.mark.django_db
def test_status_is_scoped_to_the_scheme():
    organisation, _ = make_tenant()
    scheme_a, lots_a = make_scheme(organisation, "SP1", lots=1)
    scheme_b, _ = make_scheme(organisation, "SP2", lots=1)

    apply_opening_balances(scheme_a.pk, [{"lot_id": lots_a[0].pk, "amount": "12.00"}], JULY_1)

    assert check_status(scheme_a.pk).has_opening_balances
    assert not check_status(scheme_b.pk).has_opening_balances
