from django.contrib.auth.base_user import BaseUserManager
from django.db import models


# -----------------------------------------
# Enforce tenant scoping across all models
# that belong to an organisation or a scheme
# -----------------------------------------
class TenantQuerySet(models.QuerySet):
    def _tenant_lookup(self):
        # models scoped only through their scheme declare the path
        return getattr(self.model, "tenant_lookup", "organisation")

    def for_organisation(self, organisation):
        return self.filter(**{self._tenant_lookup(): organisation})

    def for_scheme(self, scheme):
        return self.filter(scheme=scheme)

    def active(self, organisation):
        return self.for_organisation(organisation).filter(is_active=True)
    # Enables query:
    # Account.objects.active(request.organisation)


class TenantManager(BaseUserManager):
    # Inherits from BaseUserManager so the custom User can share it

    def get_queryset(self):
        return TenantQuerySet(self.model, using=self._db)

    def for_organisation(self, organisation):
        return self.get_queryset().for_organisation(organisation)

    def for_scheme(self, scheme):
        return self.get_queryset().for_scheme(scheme)

    def active(self, organisation):
        return self.get_queryset().active(organisation)

    """ Enforce rules around how users are created """

    use_in_migrations = True

    def _create_user(self, username, email, password, **extra_fields):
        if not username:
            raise ValueError("The given username must be set")
        email = self.normalize_email(email)
        user = self.model(username=username, email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    # Used when you call User.objects.create_user(...)
    def create_user(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(username, email, password, **extra_fields)

    # Used by Django when running `createsuperuser`
    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        if extra_fields.get("is_staff") is not True or extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_staff=True and is_superuser=True")
        return self._create_user(username, email, password, **extra_fields)


class PostedLineManager(models.Manager):
    """JournalLines whose entry has been posted. Balance queries read only these."""

    def get_queryset(self):
        return super().get_queryset().filter(entry__status="posted")
