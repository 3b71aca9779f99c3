import decimal

import django.contrib.auth.validators
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
import trust_core.managers
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="Organisation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("slug", models.SlugField(max_length=80, unique=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name="User",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(default=False, help_text="Designates that this user has all permissions without explicitly assigning them.", verbose_name="superuser status")),
                ("username", models.CharField(error_messages={"unique": "A user with that username already exists."}, help_text="Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.", max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name="username")),
                ("first_name", models.CharField(blank=True, max_length=150, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=150, verbose_name="last name")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="email address")),
                ("is_staff", models.BooleanField(default=False, help_text="Designates whether the user can log into this admin site.", verbose_name="staff status")),
                ("is_active", models.BooleanField(default=True, help_text="Designates whether this user should be treated as active. Unselect this instead of deleting accounts.", verbose_name="active")),
                ("date_joined", models.DateTimeField(default=django.utils.timezone.now, verbose_name="date joined")),
                ("phone", models.CharField(blank=True, max_length=32)),
                ("default_organisation", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="default_users", to="trust_core.organisation")),
                ("groups", models.ManyToManyField(blank=True, help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.", related_name="user_set", related_query_name="user", to="auth.group", verbose_name="groups")),
                ("user_permissions", models.ManyToManyField(blank=True, help_text="Specific permissions for this user.", related_name="user_set", related_query_name="user", to="auth.permission", verbose_name="user permissions")),
            ],
            options={
                "verbose_name": "user",
                "verbose_name_plural": "users",
                "abstract": False,
                "indexes": [models.Index(fields=["default_organisation"], name="user_default_org_idx")],
            },
            managers=[
                ("objects", trust_core.managers.TenantManager()),
            ],
        ),
        migrations.AddField(
            model_name="organisation",
            name="owner",
            field=models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="owned_organisations", to=settings.AUTH_USER_MODEL),
        ),
        migrations.CreateModel(
            name="OrganisationMembership",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role", models.CharField(choices=[("owner", "Owner"), ("admin", "Admin"), ("manager", "Strata manager"), ("viewer", "Viewer")], default="viewer", max_length=20)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("organisation", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="memberships", to="trust_core.organisation")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="memberships", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [models.Index(fields=["organisation", "user"], name="membership_org_user_idx")],
                "constraints": [models.UniqueConstraint(fields=("user", "organisation"), name="uq_user_organisation_membership")],
            },
            managers=[
                ("objects", trust_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="Scheme",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("scheme_number", models.CharField(max_length=50)),
                ("name", models.CharField(max_length=200)),
                ("financial_year_end_month", models.PositiveSmallIntegerField(default=6, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(12)])),
                ("financial_year_end_day", models.PositiveSmallIntegerField(default=30, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(31)])),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("organisation", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="schemes", to="trust_core.organisation")),
            ],
            options={
                "ordering": ("organisation", "scheme_number"),
                "constraints": [models.UniqueConstraint(fields=("organisation", "scheme_number"), name="uq_organisation_scheme_number")],
            },
            managers=[
                ("objects", trust_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="Lot",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("lot_number", models.CharField(max_length=20)),
                ("unit_number", models.CharField(blank=True, max_length=20, null=True)),
                ("unit_entitlement", models.PositiveIntegerField(default=0)),
                ("status", models.CharField(choices=[("active", "Active"), ("inactive", "Inactive")], default="active", max_length=10)),
                ("scheme", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="lots", to="trust_core.scheme")),
            ],
            options={
                "ordering": ("scheme", "lot_number"),
                "constraints": [models.UniqueConstraint(fields=("scheme", "lot_number"), name="uq_scheme_lot_number")],
            },
            managers=[
                ("objects", trust_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="Owner",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("first_name", models.CharField(max_length=100)),
                ("last_name", models.CharField(max_length=100)),
                ("email", models.EmailField(blank=True, max_length=254)),
                ("organisation", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="owners", to="trust_core.organisation")),
            ],
            options={
                "ordering": ("last_name", "first_name"),
            },
            managers=[
                ("objects", trust_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="LotOwnership",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("ownership_start_date", models.DateField()),
                ("ownership_end_date", models.DateField(blank=True, null=True)),
                ("lot", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="ownerships", to="trust_core.lot")),
                ("owner", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="ownerships", to="trust_core.owner")),
            ],
            options={
                "ordering": ("lot", "ownership_start_date"),
                "constraints": [
                    models.UniqueConstraint(condition=models.Q(("ownership_end_date__isnull", True)), fields=("lot",), name="uq_lot_current_ownership"),
                    models.CheckConstraint(condition=models.Q(("ownership_end_date__isnull", True), ("ownership_end_date__gte", models.F("ownership_start_date")), _connector="OR"), name="ownership_end_after_start"),
                ],
            },
            managers=[
                ("objects", trust_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=10, validators=[django.core.validators.RegexValidator("^\\d{4}$", "Account code must be a 4-digit number")])),
                ("name", models.CharField(max_length=255)),
                ("ac_type", models.CharField(choices=[("asset", "Asset"), ("liability", "Liability"), ("equity", "Equity"), ("income", "Income"), ("expense", "Expense")], max_length=10)),
                ("normal_balance", models.CharField(choices=[("debit", "Debit"), ("credit", "Credit")], editable=False, max_length=6)),
                ("fund_type", models.CharField(blank=True, choices=[("admin", "Administrative fund"), ("capital_works", "Capital works fund")], max_length=20, null=True)),
                ("is_system", models.BooleanField(default=False)),
                ("is_control_account", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("organisation", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="accounts", to="trust_core.organisation")),
                ("parent", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="children", to="trust_core.account")),
                ("scheme", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="accounts", to="trust_core.scheme")),
            ],
            options={
                "ordering": ("code",),
                "indexes": [
                    models.Index(fields=["organisation", "scheme", "code"], name="account_org_scheme_code_idx"),
                    models.Index(fields=["organisation", "ac_type"], name="account_org_type_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(condition=models.Q(("is_active", True), ("scheme__isnull", False)), fields=("scheme", "code"), name="uq_active_scheme_account_code"),
                    models.UniqueConstraint(condition=models.Q(("is_active", True), ("scheme__isnull", True)), fields=("organisation", "code"), name="uq_active_org_default_account_code"),
                ],
            },
            managers=[
                ("objects", trust_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="FinancialYear",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("year_label", models.CharField(max_length=20, validators=[django.core.validators.RegexValidator("^\\d{4}/\\d{2}$", 'Year label must be in format "2025/26"')])),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("is_current", models.BooleanField(default=False)),
                ("is_closed", models.BooleanField(default=False)),
                ("scheme", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="financial_years", to="trust_core.scheme")),
            ],
            options={
                "ordering": ("scheme", "start_date"),
                "indexes": [models.Index(fields=["scheme", "start_date"], name="fy_scheme_start_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("scheme", "year_label"), name="uq_scheme_year_label"),
                    models.UniqueConstraint(condition=models.Q(("is_current", True)), fields=("scheme",), name="uq_scheme_current_year"),
                ],
            },
            managers=[
                ("objects", trust_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="JournalEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField()),
                ("description", models.TextField(blank=True, default="")),
                ("status", models.CharField(choices=[("draft", "Draft"), ("posted", "Posted")], default="draft", max_length=10)),
                ("posted_at", models.DateTimeField(blank=True, null=True)),
                ("reference_type", models.CharField(choices=[("opening_balance", "Opening balance"), ("invoice", "Invoice"), ("payment", "Payment"), ("receipt", "Receipt"), ("journal", "Manual journal"), ("reversal", "Reversal")], max_length=30)),
                ("reference_id", models.CharField(blank=True, max_length=64, null=True)),
                ("posting_fingerprint", models.CharField(blank=True, max_length=64, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
                ("financial_year", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="journal_entries", to="trust_core.financialyear")),
                ("organisation", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="trust_core.organisation")),
                ("reverses", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="reversal", to="trust_core.journalentry")),
                ("scheme", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="journal_entries", to="trust_core.scheme")),
            ],
            options={
                "verbose_name_plural": "journal entries",
                "ordering": ("date", "id"),
                "indexes": [
                    models.Index(fields=["scheme", "status", "date"], name="je_scheme_status_date_idx"),
                    models.Index(fields=["scheme", "reference_type"], name="je_scheme_reftype_idx"),
                ],
            },
            managers=[
                ("objects", trust_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="JournalLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(blank=True, default="", max_length=400)),
                ("debit", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=18)),
                ("credit", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=18)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="lines", to="trust_core.account")),
                ("entry", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="trust_core.journalentry")),
                ("lot", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="journal_lines", to="trust_core.lot")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["account", "entry"], name="jl_account_entry_idx"),
                    models.Index(fields=["lot", "entry"], name="jl_lot_entry_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("debit__gte", 0), ("credit__gte", 0)), name="jl_non_negative_amounts"),
                    models.CheckConstraint(condition=models.Q(models.Q(("debit", 0), ("credit__gt", 0)), models.Q(("debit__gt", 0), ("credit", 0)), _connector="OR"), name="jl_debit_xor_credit"),
                ],
            },
            managers=[
                ("objects", trust_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="OpeningBalance",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("balance_date", models.DateField()),
                ("applied_at", models.DateTimeField(auto_now_add=True)),
                ("cleared_at", models.DateTimeField(blank=True, null=True)),
                ("applied_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("journal_entry", models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name="opening_balance", to="trust_core.journalentry")),
                ("lot", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="opening_balances", to="trust_core.lot")),
                ("reversal_entry", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="cleared_opening_balance", to="trust_core.journalentry")),
                ("scheme", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="opening_balances", to="trust_core.scheme")),
            ],
            options={
                "ordering": ("scheme", "lot"),
                "indexes": [models.Index(fields=["scheme", "cleared_at"], name="ob_scheme_cleared_idx")],
                "constraints": [models.UniqueConstraint(condition=models.Q(("cleared_at__isnull", True)), fields=("lot",), name="uq_lot_live_opening_balance")],
            },
            managers=[
                ("objects", trust_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="AccountBalanceSnapshot",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("snapshot_date", models.DateField()),
                ("debit_balance", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=18)),
                ("credit_balance", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=18)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="snapshots", to="trust_core.account")),
                ("scheme", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="+", to="trust_core.scheme")),
            ],
            options={
                "indexes": [models.Index(fields=["scheme", "snapshot_date"], name="snap_scheme_date_idx")],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("debit_balance__gte", 0), ("credit_balance__gte", 0)), name="ab_snap_non_negative_amounts"),
                    models.UniqueConstraint(fields=("scheme", "account", "snapshot_date"), name="uq_scheme_account_snapshot_date"),
                ],
            },
            managers=[
                ("objects", trust_core.managers.TenantManager()),
            ],
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=50)),
                ("object_type", models.CharField(max_length=100)),
                ("object_id", models.CharField(max_length=100)),
                ("changes", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("organisation", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to="trust_core.organisation")),
                ("user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ("-created_at",),
                "indexes": [
                    models.Index(fields=["organisation", "user"], name="auditlog_org_user_idx"),
                    models.Index(fields=["organisation", "created_at"], name="auditlog_org_created_idx"),
                ],
            },
            managers=[
                ("objects", trust_core.managers.TenantManager()),
            ],
        ),
    ]
