import datetime
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.test import TestCase

from trust_core.models import Account, AuditLog, JournalEntry
from trust_core.services import (
    apply_opening_balances,
    check_status,
    close_financial_year,
    create_financial_year,
    deactivate_account,
    get_account_balance,
    get_entries_for_scheme,
    get_lot_balance,
    post_entry,
    reverse_entry,
    upsert_account,
)
from trust_core.services.validation import to_id
from ..exceptions import InvalidAccountError, NotFoundError, UnbalancedEntryError
from .utils import account, levy_postings, make_scheme, make_tenant

SEPT_1 = datetime.date(2025, 9, 1)


class PostEntryTests(TestCase):
    def setUp(self):
        self.organisation, self.user = make_tenant()
        self.scheme, self.lots = make_scheme(self.organisation)
        self.trust = account(self.scheme, "1100")
        self.income = account(self.scheme, "4100")

    def post(self, postings, date=SEPT_1, reference_type="receipt"):
        return post_entry(
            self.scheme.pk, postings, date, reference_type, "R-1",
            organisation=self.organisation, user=self.user,
        )

    def test_post_entry_returns_id_of_posted_entry(self):
        entry_id = self.post(levy_postings(self.scheme, "250.00", lot=self.lots[0]))

        entry = JournalEntry.objects.get(pk=entry_id)
        self.assertEqual(entry.status, "posted")
        self.assertEqual(entry.reference_type, "receipt")
        self.assertEqual(entry.reference_id, "R-1")
        self.assertEqual(entry.lines.count(), 2)
        self.assertEqual(entry.created_by, self.user)

    def test_posted_entry_is_visible_to_balance_queries(self):
        self.post(levy_postings(self.scheme, "250.00"))

        self.assertEqual(get_account_balance(self.scheme.pk, self.trust.pk, SEPT_1), Decimal("250.00"))
        # income is credit-positive
        self.assertEqual(get_account_balance(self.scheme.pk, self.income.pk, SEPT_1), Decimal("250.00"))

    def test_side_and_amount_form_is_accepted(self):
        entry_id = self.post([
            {"account_id": self.trust.pk, "side": "debit", "amount": "10.50"},
            {"account_id": self.income.pk, "side": "credit", "amount": Decimal("10.50")},
        ])

        self.assertEqual(JournalEntry.objects.get(pk=entry_id).compute_totals()[0], Decimal("10.50"))

    def test_unbalanced_entry_is_rejected_and_nothing_is_written(self):
        with self.assertRaises(UnbalancedEntryError) as cm:
            self.post([
                {"account_id": self.trust.pk, "debit": "100.00"},
                {"account_id": self.income.pk, "credit": "99.99"},
            ])

        self.assertIn("debits=100.00, credits=99.99", str(cm.exception))
        self.assertFalse(JournalEntry.objects.exists())

    def test_single_line_entry_is_rejected(self):
        with self.assertRaises(ValidationError):
            self.post([{"account_id": self.trust.pk, "debit": "0.00"}])
        with self.assertRaises(ValidationError):
            self.post([{"account_id": self.trust.pk, "debit": "10.00"}])

    def test_sub_cent_amount_is_refused(self):
        with self.assertRaises(ValidationError):
            self.post(levy_postings(self.scheme, "10.005"))

    def test_amount_beyond_column_size_is_refused(self):
        for huge in ("1e30", "10000000000000000.00"):
            with self.assertRaises(ValidationError) as cm:
                self.post(levy_postings(self.scheme, huge))
            self.assertIn("too large", str(cm.exception))
        self.assertFalse(JournalEntry.objects.exists())

        # largest amount the ledger can store
        entry_id = self.post(levy_postings(self.scheme, "9999999999999999.99"))
        self.assertEqual(
            JournalEntry.objects.get(pk=entry_id).compute_totals()[0], Decimal("9999999999999999.99")
        )

    def test_inactive_account_is_rejected(self):
        scheme_acct = upsert_account(
            self.scheme.pk, "4150", "income", name="Special levy income",
            organisation=self.organisation,
        )
        deactivate_account(scheme_acct.pk, organisation=self.organisation)

        with self.assertRaises(InvalidAccountError):
            self.post([
                {"account_id": self.trust.pk, "debit": "10.00"},
                {"account_id": scheme_acct.pk, "credit": "10.00"},
            ])
        self.assertFalse(JournalEntry.objects.exists())

    def test_account_of_another_scheme_is_rejected(self):
        other_scheme, _ = make_scheme(self.organisation, "SP200", lots=0)
        foreign = upsert_account(
            other_scheme.pk, "1150", "asset", name="Other trust", organisation=self.organisation
        )

        with self.assertRaises(InvalidAccountError):
            self.post([
                {"account_id": foreign.pk, "debit": "10.00"},
                {"account_id": self.income.pk, "credit": "10.00"},
            ])

    def test_account_of_another_organisation_is_rejected(self):
        other_org, _ = make_tenant("Other Strata", username="other")

        foreign = Account.objects.get(organisation=other_org, code="1100")
        with self.assertRaises(InvalidAccountError):
            self.post([
                {"account_id": foreign.pk, "debit": "10.00"},
                {"account_id": self.income.pk, "credit": "10.00"},
            ])

    def test_unknown_account_is_rejected(self):
        with self.assertRaises(InvalidAccountError):
            self.post([
                {"account_id": 999999, "debit": "10.00"},
                {"account_id": self.income.pk, "credit": "10.00"},
            ])

    def test_lot_of_another_scheme_is_rejected(self):
        _, other_lots = make_scheme(self.organisation, "SP200", lots=1)

        with self.assertRaises(NotFoundError):
            self.post(levy_postings(self.scheme, "10.00", lot=other_lots[0]))

    def test_unknown_reference_type_is_rejected(self):
        with self.assertRaises(ValidationError):
            self.post(levy_postings(self.scheme, "10.00"), reference_type="refund")
        # reversals are only created by reverse_entry
        with self.assertRaises(ValidationError):
            self.post(levy_postings(self.scheme, "10.00"), reference_type="reversal")

    def test_opening_balance_entries_only_come_from_the_importer(self):
        apply_opening_balances(self.scheme.pk, [{"lot_id": self.lots[0].pk, "amount": "150.00"}], SEPT_1)

        with self.assertRaises(ValidationError) as cm:
            self.post([
                {"account_id": account(self.scheme, "1300").pk, "debit": "99.00", "lot_id": self.lots[0].pk},
                {"account_id": account(self.scheme, "3900").pk, "credit": "99.00"},
            ], reference_type="opening_balance")

        self.assertIn("reserved for the opening balance importer", str(cm.exception))
        status = check_status(self.scheme.pk)
        self.assertEqual(status.count, 1)
        self.assertEqual(status.total_amount, Decimal("150.00"))
        self.assertEqual(get_lot_balance(self.scheme.pk, self.lots[0].pk, SEPT_1), Decimal("150.00"))

    def test_scheme_of_another_organisation_is_not_found(self):
        other_org, _ = make_tenant("Other Strata", username="other")

        with self.assertRaises(NotFoundError):
            post_entry(
                self.scheme.pk, levy_postings(self.scheme, "10.00"), SEPT_1, "receipt",
                organisation=other_org,
            )

    def test_posting_is_audited(self):
        entry_id = self.post(levy_postings(self.scheme, "10.00"))

        log = AuditLog.objects.get(action="post", object_id=str(entry_id))
        self.assertEqual(log.organisation, self.organisation)
        self.assertEqual(log.user, self.user)
        self.assertEqual(log.changes["total"], "10.00")


class FinancialYearPostingTests(TestCase):
    def setUp(self):
        self.organisation, self.user = make_tenant()
        self.scheme, self.lots = make_scheme(self.organisation)
        self.year = create_financial_year(
            self.scheme.pk, "2025/26", "2025-07-01", "2026-06-30", organisation=self.organisation
        )

    def test_entry_is_assigned_to_its_financial_year(self):
        entry_id = post_entry(self.scheme.pk, levy_postings(self.scheme, "10.00"), SEPT_1, "receipt")

        self.assertEqual(JournalEntry.objects.get(pk=entry_id).financial_year, self.year)

    def test_entry_outside_any_year_is_accepted(self):
        entry_id = post_entry(
            self.scheme.pk, levy_postings(self.scheme, "10.00"), "2024-01-10", "receipt"
        )

        self.assertIsNone(JournalEntry.objects.get(pk=entry_id).financial_year)

    def test_closed_year_rejects_postings(self):
        close_financial_year(self.year.pk, organisation=self.organisation)

        with self.assertRaises(ValidationError):
            post_entry(self.scheme.pk, levy_postings(self.scheme, "10.00"), SEPT_1, "receipt")
        self.assertFalse(JournalEntry.objects.exists())


class ReverseEntryTests(TestCase):
    def setUp(self):
        self.organisation, self.user = make_tenant()
        self.scheme, self.lots = make_scheme(self.organisation)
        self.trust = account(self.scheme, "1100")
        self.entry_id = post_entry(
            self.scheme.pk, levy_postings(self.scheme, "80.00", lot=self.lots[0]), SEPT_1, "receipt"
        )

    def test_reversal_restores_balances(self):
        reversal = reverse_entry(self.entry_id, posting_date="2025-09-10", organisation=self.organisation)

        self.assertEqual(reversal.reference_type, "reversal")
        self.assertEqual(reversal.reverses_id, self.entry_id)
        self.assertEqual(get_account_balance(self.scheme.pk, self.trust.pk, "2025-09-30"), Decimal("0.00"))
        self.assertEqual(get_lot_balance(self.scheme.pk, self.lots[0].pk, "2025-09-30"), Decimal("0.00"))
        # history before the reversal date still shows the original
        self.assertEqual(get_account_balance(self.scheme.pk, self.trust.pk, "2025-09-05"), Decimal("80.00"))

    def test_entry_can_only_be_reversed_once(self):
        reversal = reverse_entry(self.entry_id)

        with self.assertRaises(ValidationError):
            reverse_entry(self.entry_id)
        with self.assertRaises(ValidationError):
            reverse_entry(reversal.pk)

    def test_reversal_may_use_deactivated_account(self):
        scheme_acct = upsert_account(
            self.scheme.pk, "4150", "income", name="Special levy income", organisation=self.organisation
        )
        entry_id = post_entry(
            self.scheme.pk,
            [
                {"account_id": self.trust.pk, "debit": "5.00"},
                {"account_id": scheme_acct.pk, "credit": "5.00"},
            ],
            SEPT_1,
            "receipt",
        )
        deactivate_account(scheme_acct.pk)

        reverse_entry(entry_id)

        self.assertEqual(get_account_balance(self.scheme.pk, scheme_acct.pk, SEPT_1), Decimal("0.00"))

    def test_unknown_entry_is_not_found(self):
        with self.assertRaises(NotFoundError):
            reverse_entry(123456)


class EntryStreamTests(TestCase):
    def setUp(self):
        self.organisation, _ = make_tenant()
        self.scheme, self.lots = make_scheme(self.organisation)

    def post(self, date, amount="10.00", lot=None):
        return post_entry(self.scheme.pk, levy_postings(self.scheme, amount, lot=lot), date, "receipt")

    def test_entries_are_ordered_by_date_then_insertion(self):
        late = self.post("2025-09-20")
        first_same_day = self.post("2025-09-05")
        early = self.post("2025-09-01")
        second_same_day = self.post("2025-09-05")

        stream = get_entries_for_scheme(self.scheme.pk)

        self.assertEqual([e.pk for e in stream], [early, first_same_day, second_same_day, late])

    def test_stream_is_restartable_and_sees_new_entries(self):
        self.post("2025-09-01")
        stream = get_entries_for_scheme(self.scheme.pk)

        first_pass = [e.pk for e in stream]
        self.assertEqual([e.pk for e in stream], first_pass)

        newer = self.post("2025-09-02")
        self.assertEqual([e.pk for e in stream], first_pass + [newer])
        self.assertEqual(stream.count(), 2)

    def test_date_range_and_lot_filters(self):
        self.post("2025-08-31")
        inside = self.post("2025-09-15", lot=self.lots[1])
        self.post("2025-09-16")
        self.post("2025-10-01", lot=self.lots[1])

        in_range = get_entries_for_scheme(self.scheme.pk, ("2025-09-01", "2025-09-30"))
        self.assertEqual(in_range.count(), 2)

        for_lot = get_entries_for_scheme(
            self.scheme.pk, ("2025-09-01", "2025-09-30"), lot_id=self.lots[1].pk
        )
        self.assertEqual([e.pk for e in for_lot], [inside])

    def test_inverted_date_range_is_rejected(self):
        with self.assertRaises(ValidationError):
            get_entries_for_scheme(self.scheme.pk, ("2025-09-30", "2025-09-01"))


@pytest.mark.django_db
def test_entries_of_other_schemes_are_not_streamed():
    organisation, _ = make_tenant()
    scheme_a, _ = make_scheme(organisation, "SP1", lots=0)
    scheme_b, _ = make_scheme(organisation, "SP2", lots=0)
    post_entry(scheme_a.pk, levy_postings(scheme_a, "10.00"), SEPT_1, "receipt")

    assert not get_entries_for_scheme(scheme_b.pk).exists()
    assert get_entries_for_scheme(scheme_a.pk).count() == 1


@pytest.mark.parametrize("value", [True, 1.9, "1.9", "lot-1"])
def test_ids_are_never_coerced(value):
    with pytest.raises(ValidationError):
        to_id(value, field="lot")


def test_integral_ids_are_accepted():
    assert to_id("7") == 7
    assert to_id(7.0) == 7
