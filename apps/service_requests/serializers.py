from django.urls import reverse
from rest_framework import serializers

from .models import RequestAttachment, RequestNote, ServiceRequest


def _display_name(user):
    if user is None:
        return None
    return user.get_full_name() or user.email


class ServiceRequestSerializer(serializers.ModelSerializer):
    company_name = serializers.CharField(source='company.company_name', read_only=True)
    assigned_to_name = serializers.SerializerMethodField()
    assigned_by_name = serializers.SerializerMethodField()
    is_overdue = serializers.BooleanField(read_only=True)

    class Meta:
        model = ServiceRequest
        fields = [
            'id', 'service_queue_id', 'client', 'company', 'company_name', 'task_status',
            'service_request_narrative', 'service_queue_category', 'assigned_to', 'assigned_to_name',
            'assigned_by', 'assigned_by_name', 'modified_by', 'due_date', 'is_overdue',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_assigned_to_name(self, obj):
        return _display_name(obj.assigned_to)

    def get_assigned_by_name(self, obj):
        return _display_name(obj.assigned_by)


class RequestNoteSerializer(serializers.ModelSerializer):
    author_name = serializers.SerializerMethodField()

    class Meta:
        model = RequestNote
        fields = ['id', 'note_content', 'is_internal', 'author', 'author_name', 'created_at']
        read_only_fields = fields

    def get_author_name(self, obj):
        return _display_name(obj.author)


class RequestAttachmentSerializer(serializers.ModelSerializer):
    stored_name = serializers.CharField(read_only=True)
    download_url = serializers.SerializerMethodField()

    class Meta:
        model = RequestAttachment
        fields = [
            'id', 'file_name', 'stored_name', 'file_size', 'mime_type', 'uploaded_by',
            'download_url', 'created_at',
        ]
        read_only_fields = fields

    def get_download_url(self, obj):
        return reverse(
            'service_requests:attachment_download',
            kwargs={'request_id': obj.request_id, 'stored_name': obj.stored_name},
        )


class ServiceRequestCreateSerializer(serializers.Serializer):
    client = serializers.CharField(max_length=255)
    service_request_narrative = serializers.CharField()
    service_queue_category = serializers.ChoiceField(choices=ServiceRequest.CATEGORY_CHOICES)
    due_date = serializers.DateTimeField(required=False, allow_null=True, default=None)
    company_id = serializers.UUIDField(required=False, allow_null=True, default=None)


class ServiceRequestUpdateSerializer(serializers.Serializer):
    client = serializers.CharField(max_length=255, required=False)
    service_request_narrative = serializers.CharField(required=False)
    service_queue_category = serializers.ChoiceField(choices=ServiceRequest.CATEGORY_CHOICES, required=False)
    due_date = serializers.DateTimeField(required=False, allow_null=True)


class AssignSerializer(serializers.Serializer):
    assigned_to = serializers.UUIDField(allow_null=True)


class StatusSerializer(serializers.Serializer):
    task_status = serializers.ChoiceField(choices=ServiceRequest.STATUS_CHOICES)


class NoteCreateSerializer(serializers.Serializer):
    note_content = serializers.CharField()
    is_internal = serializers.BooleanField(required=False, default=False)
