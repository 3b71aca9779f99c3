from django.contrib.auth.forms import (
    UserChangeForm as DjangoUserChangeForm,
    UserCreationForm as DjangoUserCreationForm)
from django.core.exceptions import ValidationError

from trust_core.models import Organisation, User


# Subclass `DjangoUserCreationForm` (form used when adding a new user)
class UserAdminCreationForm(DjangoUserCreationForm):
    class Meta(DjangoUserCreationForm.Meta):
        model = User
        fields = ("username", "email", "phone")


class UserAdminChangeForm(DjangoUserChangeForm):
    """Default organisation can only be picked from the user's active memberships."""

    class Meta(DjangoUserChangeForm.Meta):
        model = User
        fields = (
            "username",
            "email",
            "phone",
            "is_active",
            "is_staff",
            "is_superuser",
            "default_organisation",
        )

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        field = self.fields.get("default_organisation")
        if field is not None and self.instance.pk:
            field.queryset = Organisation.objects.filter(
                memberships__user=self.instance, memberships__is_active=True
            ).distinct()

    def clean_default_organisation(self):
        organisation = self.cleaned_data.get("default_organisation")
        if organisation and not self.instance.memberships.filter(
            organisation=organisation, is_active=True
        ).exists():
            raise ValidationError("User is not an active member of this organisation.")
        return organisation
