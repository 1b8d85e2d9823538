"""
Custom User model with multi-tenancy support.

This is the central authentication model for the system. Customer users and
customer admins belong to exactly one company; agents and super admins are
platform users that are not tied to a company.
"""

import uuid

from django.conf import settings
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.core.exceptions import ValidationError
from django.db import models
from auditlog.registry import auditlog

from apps.core.models import TimeStampedModel


class Role(models.TextChoices):
    """
    Closed set of roles.

    Code that branches on a role should handle every member and raise on
    anything else rather than falling through to a default.
    """

    CUSTOMER = 'customer', 'Customer'
    CUSTOMER_ADMIN = 'customer_admin', 'Customer Admin'
    AGENT = 'agent', 'Agent'
    SUPER_ADMIN = 'super_admin', 'Super Admin'

    @property
    def belongs_to_company(self):
        return self in (Role.CUSTOMER, Role.CUSTOMER_ADMIN)


COMPANY_ROLES = (Role.CUSTOMER.value, Role.CUSTOMER_ADMIN.value)
ALL_ROLES = tuple(Role)


class UserManager(BaseUserManager):
    """Email-keyed manager; passwords are only usable for super admins."""

    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError('An email address is required')
        email = self.normalize_email(email).lower()
        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('role', Role.SUPER_ADMIN)
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        return self._create_user(email, password, **extra_fields)


class User(AbstractUser):
    """
    Custom User model extending Django's AbstractUser.

    **Key Features:**
    - Email is the username and is unique across every role
    - Optional unique login code for passwordless login
    - Company membership for customer roles (NULL for agents/super admins)

    **Business Rules:**
    - customer / customer_admin: company is required
    - agent / super_admin: company must be NULL
    """

    username = None

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150)

    email = models.EmailField(
        unique=True,
        help_text="Login email; unique across all roles"
    )

    login_code = models.CharField(
        max_length=32,
        unique=True,
        null=True,
        blank=True,
        help_text="Passwordless login credential"
    )

    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.CUSTOMER,
        db_index=True,
    )

    company = models.ForeignKey(
        'companies.Company',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='users',
        help_text="Company this user belongs to (NULL for agents and super admins)"
    )

    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Designates whether this user should be treated as active"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['first_name', 'last_name']

    class Meta:
        ordering = ['email']
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        indexes = [
            models.Index(fields=['company', 'role'], name='user_company_role_idx'),
            models.Index(fields=['company', 'is_active'], name='user_company_active_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(('role__in', COMPANY_ROLES), ('company__isnull', False)) |
                    models.Q(('role__in', (Role.AGENT.value, Role.SUPER_ADMIN.value)), ('company__isnull', True))
                ),
                name='user_company_matches_role'
            ),
        ]

    def __str__(self):
        return f"{self.get_full_name() or self.email} ({self.role})"

    def clean(self):
        super().clean()
        if self.email:
            self.email = self.email.strip().lower()
        if self.login_code == '':
            self.login_code = None

        if self.role not in Role.values:
            return
        if Role(self.role).belongs_to_company and not self.company_id:
            raise ValidationError({'company': 'Customer users must belong to a company.'})
        if not Role(self.role).belongs_to_company and self.company_id:
            raise ValidationError({'company': 'Agents and super admins cannot belong to a company.'})

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)


class Agent(TimeStampedModel):
    """
    Agent profile: which companies an agent services.

    An agent sees every request of the companies listed in
    ``assigned_company_ids`` plus any request assigned to them directly.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='agent_profile',
    )

    assigned_company_ids = models.JSONField(
        default=list,
        blank=True,
        help_text="Ordered list of company ids this agent services"
    )

    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Agent'
        verbose_name_plural = 'Agents'

    def __str__(self):
        return f"Agent {self.user.get_full_name() or self.user.email}"

    def clean(self):
        super().clean()
        if self.user_id and self.user.role != Role.AGENT:
            raise ValidationError({'user': 'Agent profiles can only be attached to agent users.'})
        if not isinstance(self.assigned_company_ids, list):
            raise ValidationError({'assigned_company_ids': 'Must be a list of company ids.'})
        # Normalise to strings and drop duplicates while keeping order.
        self.assigned_company_ids = list(dict.fromkeys(str(cid) for cid in self.assigned_company_ids))

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    def covers(self, company_id):
        return self.is_active and str(company_id) in self.assigned_company_ids


auditlog.register(User, exclude_fields=['password', 'last_login'])
auditlog.register(Agent)
