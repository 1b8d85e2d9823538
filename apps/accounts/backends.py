from django.contrib.auth.backends import ModelBackend

from .models import Role, User


class SuperAdminPasswordBackend(ModelBackend):
    """Email + password login, restricted to super admins."""

    def user_can_authenticate(self, user):
        return super().user_can_authenticate(user) and user.role == Role.SUPER_ADMIN


class LoginCodeBackend(ModelBackend):
    """
    Passwordless login with a login code.

    ``login_code`` alone authenticates any active user holding that code.
    ``email`` + ``login_code`` is the customer admin flow and only matches a
    customer admin whose email and code both agree.
    """

    def authenticate(self, request, login_code=None, email=None, **kwargs):
        login_code = (login_code or '').strip()
        if not login_code:
            return None

        users = User.objects.filter(login_code=login_code)
        if email:
            users = users.filter(email=email.strip().lower(), role=Role.CUSTOMER_ADMIN)

        user = users.select_related('company').first()
        if user is None or not self.user_can_authenticate(user):
            return None
        return user
