"""
Authentication backend accepting a username *or* an email address.

Listed first in ``settings.AUTHENTICATION_BACKENDS``; the login
serializer calls ``authenticate(identifier=..., password=...)``.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend
from django.db.models import Q

User = get_user_model()


class UsernameOrEmailBackend(ModelBackend):

    def authenticate(self, request, identifier=None, password=None, **kwargs):
        """
        Return the active user whose username equals ``identifier`` or
        whose email matches it case-insensitively, if ``password`` is
        correct.  ``None`` otherwise.

        Falls back to ``kwargs[USERNAME_FIELD]`` so the admin login form
        (which posts ``username``) keeps working.
        """
        identifier = identifier or kwargs.get(User.USERNAME_FIELD)
        if not identifier or password is None:
            return None

        matches = list(
            User.objects.select_related("role").filter(
                Q(username=identifier) | Q(email__iexact=identifier)
            )[:2]
        )
        if len(matches) != 1:
            # Hash anyway so a miss takes as long as a wrong password.
            User().set_password(password)
            return None

        user = matches[0]
        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None
