from .accounts import (
    deactivate_account,
    list_active_accounts,
    resolve_account,
    seed_default_accounts,
    upsert_account,
)
from .balances import (
    get_account_balance,
    get_account_ledger,
    get_lot_balance,
    get_trial_balance,
)
from .opening_balances import (
    OpeningBalanceStatus,
    apply_opening_balances,
    check_status,
    clear_opening_balances,
    lots_for_opening_balances,
)
from .ownership import transfer_ownership
from .periods import (
    close_financial_year,
    create_financial_year,
    resolve_financial_year,
    set_current_financial_year,
)
from .posting import EntryStream, get_entries_for_scheme, post_entry, reverse_entry
from .snapshots import rebuild_snapshots
