from rest_framework import serializers

from apps.companies.models import Company
from .models import Agent, User


class CompanySummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Company
        fields = ['id', 'company_name', 'company_code']
        read_only_fields = fields


class UserSerializer(serializers.ModelSerializer):
    """The signed-in user's profile as returned by login and ``me``."""

    company_id = serializers.UUIDField(read_only=True)
    company = CompanySummarySerializer(read_only=True)

    class Meta:
        model = User
        fields = ['id', 'first_name', 'last_name', 'email', 'role', 'company_id', 'company', 'is_active']
        read_only_fields = fields


class CompanyUserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'first_name', 'last_name', 'email', 'role', 'login_code', 'is_active', 'created_at']
        read_only_fields = fields


class LoginSerializer(serializers.Serializer):
    login_code = serializers.CharField(required=False, allow_blank=True, max_length=32)
    email = serializers.EmailField(required=False, allow_blank=True)
    password = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)

    def validate(self, attrs):
        if not attrs.get('login_code') and not attrs.get('password'):
            raise serializers.ValidationError({'login_code': 'Login code is required.'})
        return attrs


class CompanyUserWriteSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    login_code = serializers.CharField(min_length=7, max_length=32)


class AgentSerializer(serializers.ModelSerializer):
    user_id = serializers.UUIDField(source='user.id', read_only=True)
    first_name = serializers.CharField(source='user.first_name', read_only=True)
    last_name = serializers.CharField(source='user.last_name', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)
    login_code = serializers.CharField(source='user.login_code', read_only=True)
    assigned_companies = serializers.SerializerMethodField()

    class Meta:
        model = Agent
        fields = [
            'id', 'user_id', 'first_name', 'last_name', 'email', 'login_code',
            'assigned_company_ids', 'assigned_companies', 'is_active', 'created_at',
        ]
        read_only_fields = fields

    def get_assigned_companies(self, obj):
        names = self.context.get('company_names')
        if names is None:
            names = dict(
                Company.objects.filter(pk__in=obj.assigned_company_ids).values_list('pk', 'company_name')
            )
            names = {str(pk): name for pk, name in names.items()}
        return [
            {'id': cid, 'company_name': names[cid]}
            for cid in obj.assigned_company_ids
            if cid in names
        ]


class AvailableAgentSerializer(serializers.ModelSerializer):
    """Public view of an agent; ``id`` is the user id so it can be used for assignment."""

    id = serializers.UUIDField(source='user.id', read_only=True)
    first_name = serializers.CharField(source='user.first_name', read_only=True)
    last_name = serializers.CharField(source='user.last_name', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = Agent
        fields = ['id', 'first_name', 'last_name', 'email']
        read_only_fields = fields


class AgentCreateSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    assigned_company_ids = serializers.ListField(child=serializers.UUIDField(), required=False, default=list)
