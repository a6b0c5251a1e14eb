"""
Users app models.

Defines the dynamic Role system and a custom User model that extends
Django's ``AbstractUser``.  A user holds exactly one role; the role's
linked ``Permission`` rows are the actor's permission token set.
"""

from django.contrib.auth.models import AbstractUser, Permission
from django.db import models

from core.permissions_constants import UsersPerms


class Role(models.Model):
    """
    Dynamic, admin-manageable role.

    Roles can be created, modified, or deleted at runtime by an
    administrator without code changes.  ``hierarchy_level`` orders the
    roles for display only; it never grants permissions by itself.

    Default roles seeded by ``setup_rbac``:
        Administrator, Quality Surveyor, Report Manager.

    Workflow permissions are declared as constants in
    ``core.permissions_constants`` and registered in each model's
    ``Meta.permissions``.  ``migrate`` materialises them as
    ``auth_permission`` rows; ``setup_rbac`` only links them to roles.
    """

    name = models.CharField(
        max_length=100,
        unique=True,
        verbose_name="Role Name",
    )
    description = models.TextField(
        blank=True,
        default="",
        verbose_name="Description",
    )
    hierarchy_level = models.PositiveSmallIntegerField(
        default=0,
        verbose_name="Hierarchy Level",
        help_text="Higher value = more authority (e.g. Administrator=100).",
    )
    permissions = models.ManyToManyField(
        Permission,
        blank=True,
        verbose_name="Permissions",
        help_text="Permission tokens granted by this role.",
    )

    class Meta:
        verbose_name = "Role"
        verbose_name_plural = "Roles"
        ordering = ["-hierarchy_level"]
        default_permissions = ()

    def __str__(self):
        return self.name


class User(AbstractUser):
    """
    Custom user for the report review system.

    Login is supported with either the username or the email address
    together with the password.  Each user holds at most **one** role;
    a user without a role holds no permissions.
    """

    email = models.EmailField(
        unique=True,
        verbose_name="Email Address",
    )
    role = models.ForeignKey(
        Role,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="users",
        verbose_name="Assigned Role",
    )

    REQUIRED_FIELDS = ["email"]

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"
        default_permissions = ()
        permissions = [
            (UsersPerms.VIEW, "Can view user accounts"),
            (UsersPerms.MANAGE, "Admin-level user management"),
        ]

    def __str__(self):
        role_name = self.role.name if self.role else "No Role"
        return f"{self.username} - {role_name}"

    @property
    def hierarchy_level(self) -> int:
        """Return the hierarchy_level of the user's role (0 if none)."""
        return self.role.hierarchy_level if self.role else 0

    # ── RBAC Permission Overrides ────────────────────────────────────

    def get_all_permissions(self, obj=None) -> set:
        """
        Return the set of ``app_label.codename`` tokens the user holds.
        """
        if not self.is_active:
            return set()

        if self.is_superuser:
            if not hasattr(self, "_superuser_perm_cache"):
                perms = Permission.objects.select_related("content_type").all()
                self._superuser_perm_cache = {
                    f"{p.content_type.app_label}.{p.codename}" for p in perms
                }
            return self._superuser_perm_cache

        if not self.role_id:
            return set()

        if not hasattr(self, "_perm_cache"):
            perms = self.role.permissions.select_related("content_type")
            self._perm_cache = {f"{p.content_type.app_label}.{p.codename}" for p in perms}

        return self._perm_cache

    def has_perm(self, perm: str, obj=None) -> bool:
        if self.is_active and self.is_superuser:
            return True
        return perm in self.get_all_permissions(obj)

    def has_perms(self, perm_list, obj=None) -> bool:
        return all(self.has_perm(perm, obj) for perm in perm_list)

    def has_module_perms(self, app_label: str) -> bool:
        if self.is_active and self.is_superuser:
            return True
        return any(perm.startswith(f"{app_label}.") for perm in self.get_all_permissions())

    def clear_permission_cache(self) -> None:
        """Drop cached tokens after the role or its permissions change."""
        for attr in ("_perm_cache", "_superuser_perm_cache"):
            if hasattr(self, attr):
                delattr(self, attr)

    @property
    def permissions_list(self) -> list[str]:
        """
        Sorted list of held tokens, handed to the client so it can hide
        actions the server would refuse anyway.
        """
        return sorted(self.get_all_permissions())
