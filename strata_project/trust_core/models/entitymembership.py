from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager


# ---------- Tenant / Organisation ----------
class Organisation(models.Model):
    """Strata-management firm. Owns schemes and the default chart of accounts."""

    name = models.CharField(max_length=200)

    slug = models.SlugField(  # A URL-friendly identifier
        max_length=80, unique=True
    )

    # Link to the user who created / administers the organisation
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        # if the user is deleted the organisation stays
        on_delete=models.SET_NULL,
        related_name="owned_organisations",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name


# ---------- Custom User ----------
class User(AbstractUser):
    """
    Staff user. 'AUTH_USER_MODEL = "trust_core.User"' is set in settings.py.
    """
    default_organisation = models.ForeignKey(
        "Organisation",
        # user might exist before being assigned an organisation
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="default_users",
    )

    phone = models.CharField(max_length=32, blank=True)

    objects = TenantManager()

    class Meta:
        indexes = [models.Index(fields=["default_organisation"], name="user_default_org_idx")]

    def __str__(self):
        return self.username


class OrganisationMembership(models.Model):
    """Join model between User and Organisation carrying the staff role."""

    ROLE_CHOICES = [
        ("owner", "Owner"),  # full control
        ("admin", "Admin"),  # can manage settings & users
        ("manager", "Strata manager"),  # can post to the trust ledger
        ("viewer", "Viewer"),  # read-only access
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="memberships",
    )
    organisation = models.ForeignKey(
        "Organisation", on_delete=models.CASCADE, related_name="memberships"
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default="viewer")

    # Suspend someone's access without deleting the record
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["user", "organisation"], name="uq_user_organisation_membership"
            ),
        ]
        indexes = [
            models.Index(fields=["organisation", "user"], name="membership_org_user_idx"),
        ]

    def __str__(self):
        return f"{self.user} @ {self.organisation} ({self.role})"

    def clean(self):
        """
        A user's default organisation must be one they are a member of.
        The membership being validated counts towards that.
        """
        if self.user_id and self.user.default_organisation_id:
            default_pk = self.user.default_organisation_id
            existing = self.user.memberships.exclude(pk=self.pk).values_list(
                "organisation_id", flat=True
            )
            if default_pk not in existing and default_pk != self.organisation_id:
                raise ValidationError(
                    f"Default organisation {self.user.default_organisation} "
                    "must be one of the user's memberships."
                )

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
