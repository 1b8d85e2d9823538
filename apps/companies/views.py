from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from apps.accounts.models import Role
from apps.accounts.permissions import require_role
from apps.notifications.services import NotificationService
from . import services
from .models import Company
from .serializers import (
    CompanyCreateSerializer,
    CompanyDetailsSerializer,
    CompanySerializer,
    CompanyUpdateSerializer,
)


@api_view(['GET', 'POST'])
@require_role(Role.SUPER_ADMIN)
def company_collection(request):
    if request.method == 'POST':
        serializer = CompanyCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = services.create_company(identity=request.identity, **serializer.validated_data)
        NotificationService.dispatch_events(result.events)
        return Response(
            {'success': True, 'customer': CompanySerializer(result.instance).data},
            status=status.HTTP_201_CREATED,
        )

    companies = Company.objects.prefetch_related('users').order_by('company_name')
    return Response({'customers': CompanySerializer(companies, many=True).data})


@api_view(['GET', 'PATCH', 'DELETE'])
@require_role(Role.SUPER_ADMIN)
def company_detail(request, company_id):
    company = services.get_company(company_id)

    if request.method == 'PATCH':
        serializer = CompanyUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        result = services.update_company(identity=request.identity, company=company, **serializer.validated_data)
        NotificationService.dispatch_events(result.events)
        return Response({'success': True, 'customer': CompanySerializer(result.instance).data})

    if request.method == 'DELETE':
        result = services.delete_company(identity=request.identity, company=company)
        NotificationService.dispatch_events(result.events)
        return Response({'success': True, 'message': 'Customer deleted successfully'})

    return Response({'customer': CompanySerializer(company).data})


@api_view(['PUT'])
@require_role(Role.SUPER_ADMIN)
def company_details(request, company_id):
    company = services.get_company(company_id)
    serializer = CompanyDetailsSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    result = services.update_company_details(identity=request.identity, company=company, **serializer.validated_data)
    NotificationService.dispatch_events(result.events)
    return Response({'success': True, 'message': 'Customer details updated successfully'})


@api_view(['POST'])
@require_role(Role.SUPER_ADMIN)
def company_reset_code(request, company_id):
    company = services.get_company(company_id)
    old_code = company.company_code
    result = services.reset_company_code(identity=request.identity, company=company)
    NotificationService.dispatch_events(result.events)
    return Response({
        'success': True,
        'old_company_code': old_code,
        'new_company_code': result.instance.company_code,
    })
