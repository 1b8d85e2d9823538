from django.core.paginator import Paginator
from django.http import FileResponse
from rest_framework import status
from rest_framework.decorators import api_view, parser_classes
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response

from apps.accounts.models import ALL_ROLES
from apps.accounts.permissions import require_role
from apps.notifications.services import NotificationService
from . import workflow
from .serializers import (
    AssignSerializer,
    NoteCreateSerializer,
    RequestAttachmentSerializer,
    RequestNoteSerializer,
    ServiceRequestCreateSerializer,
    ServiceRequestSerializer,
    ServiceRequestUpdateSerializer,
    StatusSerializer,
)

MAX_PAGE_SIZE = 100


def _page_params(request):
    try:
        page = int(request.query_params.get('page', 1))
        per_page = int(request.query_params.get('per_page', 25))
    except (TypeError, ValueError):
        page, per_page = 1, 25
    return page, max(1, min(per_page, MAX_PAGE_SIZE))


def _detail_payload(identity, request_id):
    service_request, notes, attachments = workflow.get_request(identity, request_id)
    return {
        'request': ServiceRequestSerializer(service_request).data,
        'notes': RequestNoteSerializer(notes, many=True).data,
        'attachments': RequestAttachmentSerializer(attachments, many=True).data,
    }


@api_view(['GET', 'POST'])
@parser_classes([JSONParser, MultiPartParser, FormParser])
@require_role(*ALL_ROLES)
def request_collection(request):
    if request.method == 'POST':
        serializer = ServiceRequestCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = workflow.create_request(
            request.identity,
            files=request.FILES.getlist('files'),
            **serializer.validated_data,
        )
        NotificationService.dispatch_events(result.events)
        return Response(
            {'success': True, **_detail_payload(request.identity, result.instance.pk)},
            status=status.HTTP_201_CREATED,
        )

    queryset = workflow.list_requests(request.identity, request.query_params)
    page, per_page = _page_params(request)
    paginator = Paginator(queryset, per_page)
    page_obj = paginator.get_page(page)
    return Response({
        'requests': ServiceRequestSerializer(page_obj.object_list, many=True).data,
        'pagination': {
            'page': page_obj.number,
            'per_page': per_page,
            'total': paginator.count,
            'pages': paginator.num_pages,
            'has_next': page_obj.has_next(),
            'has_previous': page_obj.has_previous(),
        },
    })


@api_view(['GET', 'PATCH'])
@require_role(*ALL_ROLES)
def request_detail(request, request_id):
    if request.method == 'PATCH':
        serializer = ServiceRequestUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        result = workflow.update_request(request.identity, request_id, **serializer.validated_data)
        NotificationService.dispatch_events(result.events)
        return Response({'success': True, 'request': ServiceRequestSerializer(result.instance).data})

    return Response(_detail_payload(request.identity, request_id))


@api_view(['POST'])
@require_role(*workflow.ASSIGN_ROLES)
def request_assign(request, request_id):
    serializer = AssignSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    result = workflow.assign_request(
        request.identity, request_id, assigned_to_id=serializer.validated_data['assigned_to']
    )
    NotificationService.dispatch_events(result.events)
    return Response({'success': True, 'request': ServiceRequestSerializer(result.instance).data})


@api_view(['POST'])
@require_role(*ALL_ROLES)
def request_status(request, request_id):
    serializer = StatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    result = workflow.change_status(request.identity, request_id, **serializer.validated_data)
    NotificationService.dispatch_events(result.events)
    return Response({'success': True, 'request': ServiceRequestSerializer(result.instance).data})


@api_view(['GET', 'POST'])
@require_role(*ALL_ROLES)
def request_notes(request, request_id):
    if request.method == 'POST':
        serializer = NoteCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = workflow.add_note(request.identity, request_id, **serializer.validated_data)
        NotificationService.dispatch_events(result.events)
        return Response(
            {'success': True, 'note': RequestNoteSerializer(result.instance).data},
            status=status.HTTP_201_CREATED,
        )

    _, notes, _ = workflow.get_request(request.identity, request_id)
    return Response({'notes': RequestNoteSerializer(notes, many=True).data})


@api_view(['GET', 'POST'])
@parser_classes([MultiPartParser, FormParser])
@require_role(*ALL_ROLES)
def request_attachments(request, request_id):
    if request.method == 'POST':
        result = workflow.add_attachments(request.identity, request_id, files=request.FILES.getlist('files'))
        NotificationService.dispatch_events(result.events)
        return Response(
            {'success': True, 'attachments': RequestAttachmentSerializer(result.instance, many=True).data},
            status=status.HTTP_201_CREATED,
        )

    _, _, attachments = workflow.get_request(request.identity, request_id)
    return Response({'attachments': RequestAttachmentSerializer(attachments, many=True).data})


@api_view(['GET'])
@require_role(*ALL_ROLES)
def attachment_download(request, request_id, stored_name):
    handle, file_name, mime_type = workflow.open_attachment(request.identity, request_id, stored_name)
    return FileResponse(handle, as_attachment=True, filename=file_name, content_type=mime_type)
