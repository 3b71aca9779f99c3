from django.contrib import admin, messages
from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _

from trust_core.exceptions import TrustLedgerError
from trust_core.services import clear_opening_balances, rebuild_snapshots

# ---------- Admin actions ----------


@admin.action(description=_("Clear opening balances"))
def clear_scheme_opening_balances(modeladmin, request, queryset):
    """
    Reverse the live opening balances of each selected scheme.
    Each scheme is cleared in its own transaction; failures are reported
    per scheme and do not stop the batch.
    """
    cleared_schemes = 0
    for scheme in queryset:
        try:
            cleared = clear_opening_balances(scheme.pk, user=request.user)
        except (ValidationError, TrustLedgerError) as exc:
            modeladmin.message_user(
                request,
                _("%(scheme)s: %(err)s") % {"scheme": scheme, "err": exc},
                level=messages.ERROR,
            )
            continue
        cleared_schemes += 1
        modeladmin.message_user(
            request,
            _("%(scheme)s: cleared %(count)d opening balances") % {
                "scheme": scheme, "count": cleared,
            },
        )

    modeladmin.message_user(
        request,
        _("Cleared opening balances for %(ok)d of %(total)d schemes.") % {
            "ok": cleared_schemes, "total": len(queryset),
        },
        level=messages.SUCCESS if cleared_schemes == len(queryset) else messages.WARNING,
    )


@admin.action(description=_("Rebuild balance snapshots"))
def rebuild_scheme_snapshots(modeladmin, request, queryset):
    for scheme in queryset:
        count = rebuild_snapshots(scheme)
        modeladmin.message_user(request, f"{scheme}: {count} snapshot rows rebuilt")
