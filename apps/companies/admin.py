"""
Admin configuration for Company model.
"""

from django.contrib import admin
from simple_history.admin import SimpleHistoryAdmin

from .models import Company


@admin.register(Company)
class CompanyAdmin(SimpleHistoryAdmin):
    """
    Admin interface for Company model.
    """
    list_display = ['company_name', 'company_code', 'primary_contact', 'email', 'created_at']
    search_fields = ['company_name', 'company_code', 'primary_contact', 'email']
    readonly_fields = ['company_code', 'created_at', 'updated_at']

    fieldsets = (
        ('Basic Information', {
            'fields': ('company_name', 'company_code')
        }),
        ('Contact', {
            'fields': ('primary_contact', 'email', 'phone')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    # Creation and deletion go through apps.companies.services so code
    # generation and the open-request check apply.
    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
