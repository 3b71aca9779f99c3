class TrustLedgerError(Exception):
    """Base class for trust-ledger rejections reported back to staff."""
    pass


class NotFoundError(TrustLedgerError):
    """Raised when a scheme, lot or account does not exist in the caller's scope."""
    pass


class UnbalancedEntryError(TrustLedgerError):
    """Raised when a JournalEntry fails double-entry balance check."""
    pass


class InvalidAccountError(TrustLedgerError):
    """Raised when a posting references an inactive or foreign account."""
    pass


class AlreadyAppliedError(TrustLedgerError):
    """Raised when opening balances are applied twice without a re-seed."""
    pass


class NotAppliedError(TrustLedgerError):
    """Raised when clearing opening balances that were never applied."""
    pass


class AlreadyPostedDifferentPayload(TrustLedgerError):
    """Raised when a JournalEntry already posted with different payload """
    pass
