from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend


class EmailBackend(ModelBackend):
    """Case-insensitive email login.

    Accepts the identifier as ``username`` (Django's default keyword) or as
    ``email`` (what dj-rest-auth passes for email-only logins).
    """

    def authenticate(self, request, username=None, password=None, **kwargs):
        usermodel = get_user_model()
        identifier = username or kwargs.get("email")
        if not identifier or password is None:
            return None
        try:
            user = usermodel.objects.get(email__iexact=identifier)
        except usermodel.DoesNotExist:
            # Run the hasher anyway to blunt timing attacks on unknown emails.
            usermodel().set_password(password)
            return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user

        return None
