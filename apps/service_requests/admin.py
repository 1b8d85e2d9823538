from django.contrib import admin
from simple_history.admin import SimpleHistoryAdmin

from .models import RequestAttachment, RequestNote, ServiceRequest


class RequestNoteInline(admin.TabularInline):
    model = RequestNote
    extra = 0
    fields = ('author', 'note_content', 'is_internal', 'created_at')
    readonly_fields = fields
    can_delete = False


class RequestAttachmentInline(admin.TabularInline):
    model = RequestAttachment
    extra = 0
    fields = ('file_name', 'file_size', 'mime_type', 'uploaded_by', 'created_at')
    readonly_fields = fields
    can_delete = False


@admin.register(ServiceRequest)
class ServiceRequestAdmin(SimpleHistoryAdmin):
    list_display = ['service_queue_id', 'client', 'company', 'task_status', 'assigned_to', 'due_date', 'created_at']
    list_filter = ['task_status', 'service_queue_category']
    search_fields = ['service_queue_id', 'client', 'company__company_name']
    raw_id_fields = ['company', 'assigned_to', 'assigned_by', 'modified_by']
    readonly_fields = ['service_queue_id', 'company', 'created_at', 'updated_at']
    inlines = [RequestNoteInline, RequestAttachmentInline]

    # Requests are opened through the API so codes and assignment rules apply.
    def has_add_permission(self, request):
        return False
