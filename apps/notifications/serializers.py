from rest_framework import serializers

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    request_id = serializers.UUIDField(source='service_request_id', read_only=True)

    class Meta:
        model = Notification
        fields = ['id', 'type', 'title', 'message', 'request_id', 'is_read', 'read_at', 'created_at']
        read_only_fields = fields
