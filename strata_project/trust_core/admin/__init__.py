from .account import AccountAdmin, AccountBalanceSnapshotAdmin
from .actions import clear_scheme_opening_balances, rebuild_scheme_snapshots
from .auditlog import AuditLogAdmin
from .forms import UserAdminChangeForm, UserAdminCreationForm
from .inlines import JournalLineInline, LotOwnershipInline
from .journal import JournalEntryAdmin
from .membership import OrganisationAdmin, OrganisationMembershipAdmin, UserAdmin
from .mixins import TenantAdminMixin
from .opening_balance import OpeningBalanceAdmin
from .scheme import FinancialYearAdmin, LotAdmin, OwnerAdmin, SchemeAdmin
