# accounts/backends.py
from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend
from django.db.models import Q

User = get_user_model()


class EmailBackend(ModelBackend):
    """
    Sign in with either email or username.
    Used by the token endpoint and the admin.
    """
    def authenticate(self, request, username=None, password=None, **kwargs):
        if username is None or password is None:
            return None

        user = (
            User.objects.filter(Q(email__iexact=username) | Q(username=username))
            .order_by('id')
            .first()
        )
        if user is None:
            # Run the hasher anyway so unknown accounts take as long as bad passwords
            User().set_password(password)
            return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None
