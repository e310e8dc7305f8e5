from rest_framework import serializers
from .models import Tenant, TenantMembership


class TenantSerializer(serializers.ModelSerializer):
    member_count = serializers.SerializerMethodField()

    class Meta:
        model = Tenant
        fields = [
            'id', 'name', 'slug', 'status',
            'email', 'phone', 'website', 'logo_url',
            'timezone', 'locale', 'metadata',
            'member_count',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'slug', 'status', 'created_at', 'updated_at']

    def get_member_count(self, obj):
        return obj.memberships.filter(is_active=True).count()


class TenantMembershipSerializer(serializers.ModelSerializer):
    user_email = serializers.EmailField(source='user.email', read_only=True)
    user_name = serializers.CharField(source='user.get_full_name', read_only=True)

    class Meta:
        model = TenantMembership
        fields = [
            'id', 'user', 'role', 'is_active',
            'user_email', 'user_name',
            'joined_at', 'updated_at',
        ]
        read_only_fields = ['id', 'user', 'joined_at', 'updated_at']
