"""
Company model for multi-tenancy support.

A company is the tenant root: it owns customer users and service requests.
Every service request read or write made by a customer or customer admin is
scoped to exactly one company.
"""

from django.db import models
from simple_history.models import HistoricalRecords
from auditlog.registry import auditlog

from apps.core.models import TimeStampedModel


class Company(TimeStampedModel):
    """
    Represents a customer organization (tenant) serviced by the platform.

    **Key Design Decisions:**
    - ``company_code`` is a short human-enterable code generated on creation
      and doubles as the login code of the company's primary contact
    - Deletion is blocked while any service request references the company
    """

    company_name = models.CharField(
        max_length=255,
        db_index=True,
        help_text="Registered name of the customer organization"
    )

    company_code = models.CharField(
        max_length=7,
        unique=True,
        help_text="Unique 7-character code identifying the company"
    )

    primary_contact = models.CharField(
        max_length=255,
        help_text="Name of the primary contact person"
    )

    phone = models.CharField(
        max_length=50,
        blank=True,
        help_text="Primary contact phone number"
    )

    email = models.EmailField(
        unique=True,
        help_text="Primary contact email for this company"
    )

    history = HistoricalRecords()

    class Meta:
        ordering = ['company_name']
        verbose_name = 'Company'
        verbose_name_plural = 'Companies'

    def __str__(self):
        return f"{self.company_name} ({self.company_code})"

    def get_primary_user(self):
        """
        Resolve the user acting as the company's primary contact.

        The primary contact logs in with the company code; when no such user
        exists the earliest active customer admin stands in.
        """
        from apps.accounts.models import Role

        users = self.users.filter(is_active=True)
        primary = users.filter(login_code=self.company_code).first()
        if primary is not None:
            return primary
        return users.filter(role=Role.CUSTOMER_ADMIN).order_by('created_at').first()


auditlog.register(Company)
