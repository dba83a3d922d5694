from django.contrib.auth.backends import BaseBackend

from .services import find_user_by_email, find_user_by_id, verify_password


class EmailBackend(BaseBackend):
    """
    Authenticate using email + password
    """

    def authenticate(self, request, email=None, password=None, **kwargs):
        if email is None or password is None:
            return None

        user = find_user_by_email(email)
        if user is not None and verify_password(user, password):
            return user
        return None

    def get_user(self, user_id):
        return find_user_by_id(user_id)
