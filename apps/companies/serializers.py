from rest_framework import serializers

from apps.accounts.models import Role, User
from .models import Company


class CompanyUserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'first_name', 'last_name', 'email', 'role', 'is_active']


class CompanySerializer(serializers.ModelSerializer):
    """Company with its users, as listed on the super admin customer screens."""

    users = CompanyUserSerializer(many=True, read_only=True)

    class Meta:
        model = Company
        fields = [
            'id', 'company_name', 'company_code', 'primary_contact', 'phone',
            'email', 'users', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class CompanyCreateSerializer(serializers.Serializer):
    company_name = serializers.CharField(max_length=255)
    primary_contact = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    email = serializers.EmailField()


class CompanyUpdateSerializer(serializers.Serializer):
    company_name = serializers.CharField(max_length=255, required=False)
    primary_contact = serializers.CharField(max_length=255, required=False)
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    email = serializers.EmailField(required=False)


class CompanyDetailsSerializer(serializers.Serializer):
    company_name = serializers.CharField(max_length=255)
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    login_code = serializers.CharField(min_length=7, max_length=32)
    role = serializers.ChoiceField(choices=[Role.CUSTOMER, Role.CUSTOMER_ADMIN], default=Role.CUSTOMER_ADMIN)
