from django.core.exceptions import ValidationError
from django.db.models.signals import pre_delete
from django.dispatch import receiver

from .models import Account, FinancialYear, JournalEntry, JournalLine, OpeningBalance

"""Block deletion if account has ever been used in a journal line."""


# pre_delete also fires for queryset deletes, which bypass Model.delete()
@receiver(pre_delete, sender=Account)
def prevent_delete_account_with_journal_lines(sender, instance, **kwargs):
    if JournalLine.objects.filter(account=instance).exists():
        raise ValidationError("Cannot delete account used in journal lines; deactivate it instead.")


"""Block deletion if financial year has journal entries."""


@receiver(pre_delete, sender=FinancialYear)
def prevent_delete_financial_year_with_entries(sender, instance, **kwargs):
    if JournalEntry.objects.filter(financial_year=instance).exists():
        raise ValidationError(
            "Cannot delete a financial year with journal entries.")


"""The posted ledger is append-only."""


@receiver(pre_delete, sender=JournalEntry)
def prevent_delete_posted_entry(sender, instance, **kwargs):
    if instance.status == "posted":
        raise ValidationError("Posted journal entries cannot be deleted; reverse them instead.")


@receiver(pre_delete, sender=JournalLine)
def prevent_delete_posted_line(sender, instance, **kwargs):
    if JournalEntry.objects.filter(pk=instance.entry_id, status="posted").exists():
        raise ValidationError("Lines of a posted journal entry cannot be deleted.")


@receiver(pre_delete, sender=OpeningBalance)
def prevent_delete_opening_balance(sender, instance, **kwargs):
    raise ValidationError("Opening balances are cleared, never deleted.")
