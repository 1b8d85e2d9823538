from django.contrib import admin

from .models import ActivityLog


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ('type', 'description', 'user', 'company_id', 'created_at')
    list_filter = ('type',)
    search_fields = ('description', 'user__email')
    readonly_fields = ('type', 'description', 'user', 'company_id', 'service_request_id', 'created_at')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
