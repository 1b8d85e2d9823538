from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from apps.companies.models import Company
from apps.notifications.services import NotificationService
from .models import ALL_ROLES, Role, User
from .permissions import require_role
from .serializers import (
    AgentCreateSerializer,
    AgentSerializer,
    AvailableAgentSerializer,
    CompanyUserSerializer,
    CompanyUserWriteSerializer,
    LoginSerializer,
    UserSerializer,
)
from .services import agent_service, auth_service, user_service
from .session import clear_session_cookie, set_session_cookie


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def login_view(request):
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user, identity, token = auth_service.login(request, **serializer.validated_data)
    response = Response({'success': True, 'user': UserSerializer(user).data, 'token': token})
    return set_session_cookie(response, token)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def logout_view(request):
    return clear_session_cookie(Response({'success': True}))


@api_view(['GET'])
@require_role(*ALL_ROLES)
def me_view(request):
    user = User.objects.select_related('company').get(pk=request.identity.user_id)
    return Response({'user': UserSerializer(user).data})


@api_view(['GET', 'POST'])
@require_role(Role.SUPER_ADMIN)
def agent_collection(request):
    if request.method == 'POST':
        serializer = AgentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = agent_service.create_agent(identity=request.identity, **serializer.validated_data)
        NotificationService.dispatch_events(result.events)
        return Response(
            {'success': True, 'agent': AgentSerializer(result.instance).data},
            status=status.HTTP_201_CREATED,
        )

    company_names = {str(pk): name for pk, name in Company.objects.values_list('pk', 'company_name')}
    agents = agent_service.list_agents()
    return Response({
        'agents': AgentSerializer(agents, many=True, context={'company_names': company_names}).data,
    })


@api_view(['GET'])
@require_role(Role.SUPER_ADMIN, Role.CUSTOMER_ADMIN, Role.CUSTOMER)
def agents_available(request):
    return Response({'agents': AvailableAgentSerializer(agent_service.available_agents(), many=True).data})


@api_view(['GET', 'POST'])
@require_role(Role.CUSTOMER_ADMIN)
def user_collection(request):
    if request.method == 'POST':
        serializer = CompanyUserWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = user_service.create_company_user(request.identity, **serializer.validated_data)
        NotificationService.dispatch_events(result.events)
        user = result.instance
        return Response(
            {
                'success': True,
                'user': CompanyUserSerializer(user).data,
                'message': f'User "{user.get_full_name()}" created successfully with login code: {user.login_code}',
            },
            status=status.HTTP_201_CREATED,
        )

    users = user_service.list_company_users(request.identity)
    return Response({'users': CompanyUserSerializer(users, many=True).data})


@api_view(['PATCH', 'DELETE'])
@require_role(Role.CUSTOMER_ADMIN)
def user_detail(request, user_id):
    if request.method == 'DELETE':
        result = user_service.delete_company_user(request.identity, user_id)
        NotificationService.dispatch_events(result.events)
        return Response({'success': True, 'deactivated': result.instance is not None})

    serializer = CompanyUserWriteSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    result = user_service.update_company_user(request.identity, user_id, **serializer.validated_data)
    NotificationService.dispatch_events(result.events)
    return Response({'success': True, 'user': CompanyUserSerializer(result.instance).data})
