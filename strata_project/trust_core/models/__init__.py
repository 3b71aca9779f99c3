from .account import Account
from .auditlog import AuditLog
from .entitymembership import Organisation, OrganisationMembership, User
from .financial_year import FinancialYear
from .journal import JournalEntry, JournalLine
from .opening_balance import OpeningBalance
from .scheme import Lot, LotOwnership, Owner, Scheme
from .snapshot import AccountBalanceSnapshot
