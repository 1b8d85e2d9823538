from rest_framework.decorators import api_view
from rest_framework.response import Response

from apps.accounts.models import ALL_ROLES
from apps.accounts.permissions import require_role
from apps.core.exceptions import NotFound
from .models import Notification
from .serializers import NotificationSerializer
from .services import NotificationService

MAX_PAGE_SIZE = 50


def _limit(request, default=20):
    try:
        limit = int(request.query_params.get('limit', default))
    except (TypeError, ValueError):
        limit = default
    return max(1, min(limit, MAX_PAGE_SIZE))


@api_view(['GET'])
@require_role(*ALL_ROLES)
def notification_list(request):
    """The caller's inbox, newest first."""
    user_id = request.identity.user_id
    notifications = NotificationService.get_user_notifications(
        user_id=user_id,
        limit=_limit(request),
        unread_only=request.query_params.get('unread_only', '').lower() == 'true',
        types=request.query_params.getlist('type') or None,
    )
    return Response({
        'notifications': NotificationSerializer(notifications, many=True).data,
        'unread_count': NotificationService.get_unread_count(user_id=user_id),
    })


@api_view(['GET'])
@require_role(*ALL_ROLES)
def notification_count(request):
    return Response({'unread_count': NotificationService.get_unread_count(user_id=request.identity.user_id)})


@api_view(['POST'])
@require_role(*ALL_ROLES)
def notification_mark_all_read(request):
    updated = NotificationService.mark_all_as_read(user_id=request.identity.user_id)
    return Response({'success': True, 'updated': updated})


@api_view(['POST'])
@require_role(*ALL_ROLES)
def notification_mark_read(request, notification_id):
    notification = Notification.objects.filter(pk=notification_id, user_id=request.identity.user_id).first()
    if notification is None:
        raise NotFound('Notification not found')
    notification.mark_as_read()
    return Response({'success': True, 'notification': NotificationSerializer(notification).data})
