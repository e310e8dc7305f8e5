from django.contrib import admin

from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ('student', 'amount', 'group', 'date', 'tenant', 'created_at')
    list_filter = ('tenant', 'date')
    search_fields = ('student__name', 'description')
    raw_id_fields = ('student', 'group')
    date_hierarchy = 'date'
    readonly_fields = ('created_at', 'updated_at')
