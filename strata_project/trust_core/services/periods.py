import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from ..exceptions import NotFoundError
from ..models import FinancialYear
from .audit_helper import log_action
from .lookups import get_scheme
from .validation import to_date

logger = logging.getLogger(__name__)

"""
    Posting date determines the financial year.
    Schemes without financial years accept postings on any date.
"""


def resolve_financial_year(scheme, date):
    return FinancialYear.objects.filter(
        scheme=scheme, start_date__lte=date, end_date__gte=date
    ).first()


def create_financial_year(scheme_id, year_label, start_date, end_date, organisation=None, user=None):
    start_date = to_date(start_date, field="start date")
    end_date = to_date(end_date, field="end date")
    if end_date <= start_date:
        raise ValidationError("End date must be after start date")

    with transaction.atomic():
        scheme = get_scheme(scheme_id, organisation, for_update=True)

        overlapping = FinancialYear.objects.filter(
            scheme=scheme, start_date__lte=end_date, end_date__gte=start_date
        ).first()
        if overlapping:
            raise ValidationError(
                f"Date range overlaps with existing financial year: {overlapping.year_label}"
            )

        # first year of a scheme becomes the current one
        is_first = not FinancialYear.objects.filter(scheme=scheme).exists()
        year = FinancialYear(
            scheme=scheme,
            year_label=year_label,
            start_date=start_date,
            end_date=end_date,
            is_current=is_first,
        )
        year.save()
        log_action(action="create", instance=year, user=user, organisation=scheme.organisation)

    logger.info("Financial year %s created for %s", year_label, scheme)
    return year


def _get_year(year_id, organisation):
    qs = FinancialYear.objects.select_for_update().select_related("scheme")
    if organisation is not None:
        qs = qs.for_organisation(organisation)
    try:
        return qs.get(pk=year_id)
    except (FinancialYear.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Financial year {year_id} not found")


def set_current_financial_year(year_id, organisation=None, user=None):
    with transaction.atomic():
        year = _get_year(year_id, organisation)
        FinancialYear.objects.filter(scheme=year.scheme, is_current=True).exclude(
            pk=year.pk
        ).update(is_current=False)
        year.is_current = True
        year.save()
        log_action(action="set_current", instance=year, user=user, organisation=year.scheme.organisation)
    return year


def close_financial_year(year_id, organisation=None, user=None):
    """Close the books for a year: no further postings dated inside it."""
    with transaction.atomic():
        year = _get_year(year_id, organisation)
        if year.is_closed:
            return year
        year.is_closed = True
        year.save()
        log_action(action="close", instance=year, user=user, organisation=year.scheme.organisation)

    logger.info("Financial year %s closed for %s", year.year_label, year.scheme)
    return year
