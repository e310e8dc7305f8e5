from rest_framework import serializers

from core.models import Student
from core.serializers import TenantPrimaryKeyRelatedField
from schedule.models import Group

from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    """Платёж ученика."""
    student = TenantPrimaryKeyRelatedField(queryset=Student.objects.all())
    student_name = serializers.CharField(source='student.name', read_only=True)
    group = TenantPrimaryKeyRelatedField(
        queryset=Group.objects.all(), required=False, allow_null=True
    )
    group_name = serializers.CharField(source='group.name', read_only=True, default='')

    class Meta:
        model = Payment
        fields = [
            'id', 'amount', 'student', 'student_name', 'group', 'group_name',
            'date', 'description', 'created_at',
        ]
        read_only_fields = ['id', 'created_at']
        extra_kwargs = {
            'description': {'required': False, 'allow_blank': True},
        }

    def validate_amount(self, value):
        if value is None or value <= 0:
            raise serializers.ValidationError('Amount must be greater than zero')
        return value
