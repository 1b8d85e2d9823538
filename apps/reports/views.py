from rest_framework import serializers
from rest_framework.decorators import api_view
from rest_framework.response import Response

from apps.accounts.models import ALL_ROLES, Role
from apps.accounts.permissions import require_role
from apps.audit.models import ActivityLog
from . import services


class ActivitySerializer(serializers.ModelSerializer):
    user_name = serializers.SerializerMethodField()

    class Meta:
        model = ActivityLog
        fields = ['id', 'type', 'description', 'user', 'user_name', 'service_request_id', 'created_at']
        read_only_fields = fields

    def get_user_name(self, obj):
        if obj.user is None:
            return None
        return obj.user.get_full_name() or obj.user.email


@api_view(['GET'])
@require_role(*ALL_ROLES)
def report_view(request):
    return Response(services.build_report(request.identity, request.query_params))


@api_view(['GET'])
@require_role(Role.AGENT)
def agent_summary_view(request):
    return Response({'summary': services.agent_summary(request.identity)})


@api_view(['GET'])
@require_role(Role.SUPER_ADMIN)
def customers_view(request):
    return Response({'customers': services.customers_overview()})


@api_view(['GET'])
@require_role(Role.CUSTOMER_ADMIN, Role.CUSTOMER)
def activity_view(request):
    activity = services.customer_activity(request.identity)
    return Response({'activity': ActivitySerializer(activity, many=True).data})
