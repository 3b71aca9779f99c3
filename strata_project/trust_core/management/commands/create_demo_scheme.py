import datetime
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils.text import slugify

from trust_core.models import Lot, LotOwnership, Organisation, OrganisationMembership, Owner, Scheme
from trust_core.services import (
    apply_opening_balances,
    create_financial_year,
    seed_default_accounts,
)

User = get_user_model()

DEMO_OWNERS = [
    ("Ada", "Nguyen"),
    ("Ben", "Okafor"),
    ("Chloe", "Martin"),
    ("Dev", "Patel"),
]


class Command(BaseCommand):
    help = (
        "Create a demo organisation, staff user and strata scheme with lots, "
        "owners and opening balances."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--organisation-name",
            default="Demo Strata",
            help="Name of the demo organisation to create.",
        )
        parser.add_argument("--scheme-number", default="SP10001")
        parser.add_argument("--lots", type=int, default=4, help="Number of lots.")
        parser.add_argument(
            "--username", default="demo", help="Username for the demo user."
        )
        parser.add_argument(
            "--password", default="demo123", help="Password for the demo user."
        )
        parser.add_argument(
            "--no-opening-balances",
            action="store_true",
            help="Skip applying sample opening balances.",
        )

    # Generate unique slug for organisation
    def _unique_slug(self, name, max_tries=100):
        base = slugify(name) or "organisation"
        slug = base
        i = 1
        while Organisation.objects.filter(slug=slug).exists():
            slug = f"{base}-{i}"  # "demo-strata" -> "demo-strata-1" -> ...
            i += 1
            if i > max_tries:
                raise RuntimeError("Couldn't generate unique slug")
        return slug

    @transaction.atomic
    def handle(self, *args, **options):
        name = options["organisation_name"]
        username = options["username"]
        password = options["password"]

        # 1. User and organisation
        user, created = User.objects.get_or_create(
            username=username, defaults={"email": f"{username}@example.com"}
        )
        if created:
            user.set_password(password)
            user.save()

        organisation = Organisation.objects.filter(name=name).first()
        if organisation is None:
            organisation = Organisation.objects.create(
                name=name, slug=self._unique_slug(name), owner=user
            )
        OrganisationMembership.objects.get_or_create(
            user=user, organisation=organisation, defaults={"role": "owner"}
        )
        user.default_organisation = organisation
        user.save()
        self.stdout.write(self.style.SUCCESS(f"Organisation: {organisation} (user {username})"))

        # 2. Default chart of accounts
        seeded = seed_default_accounts(organisation)
        self.stdout.write(self.style.SUCCESS(f"Seeded {len(seeded)} default accounts"))

        # 3. Scheme, financial year, lots and owners
        scheme, created = Scheme.objects.get_or_create(
            organisation=organisation,
            scheme_number=options["scheme_number"],
            defaults={"name": f"{name} Residences"},
        )
        if not created:
            self.stdout.write(self.style.WARNING(f"Scheme {scheme} already exists; nothing to do"))
            return

        today = datetime.date.today()
        # financial year ending 30 June
        start_year = today.year if today.month > 6 else today.year - 1
        year = create_financial_year(
            scheme,
            f"{start_year}/{str(start_year + 1)[-2:]}",
            datetime.date(start_year, 7, 1),
            datetime.date(start_year + 1, 6, 30),
            user=user,
        )
        self.stdout.write(self.style.SUCCESS(f"Created financial year {year.year_label}"))

        balances = []
        for n in range(1, options["lots"] + 1):
            lot = Lot.objects.create(
                scheme=scheme, lot_number=str(n), unit_number=str(n), unit_entitlement=10
            )
            first, last = DEMO_OWNERS[(n - 1) % len(DEMO_OWNERS)]
            owner = Owner.objects.create(
                organisation=organisation,
                first_name=first,
                last_name=last,
                email=f"{first.lower()}.{last.lower()}@example.com",
            )
            LotOwnership.objects.create(
                lot=lot, owner=owner, ownership_start_date=year.start_date
            )
            # alternate arrears and prepaid lots
            amount = Decimal("150.00") * n if n % 2 else Decimal("-40.00") * n
            balances.append({"lot_id": lot.pk, "amount": amount})
        self.stdout.write(self.style.SUCCESS(f"Created scheme {scheme} with {options['lots']} lots"))

        # 4. Opening balances
        if not options["no_opening_balances"]:
            applied = apply_opening_balances(scheme, balances, year.start_date, user=user)
            self.stdout.write(self.style.SUCCESS(f"Applied {len(applied)} opening balances"))

        self.stdout.write(self.style.SUCCESS("Demo scheme setup complete!"))
