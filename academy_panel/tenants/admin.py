from django.contrib import admin
from .models import Tenant, TenantMembership


class TenantMembershipInline(admin.TabularInline):
    model = TenantMembership
    extra = 0
    readonly_fields = ('joined_at', 'updated_at')
    raw_id_fields = ('user',)


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ('name', 'slug', 'status', 'timezone', 'created_at')
    list_filter = ('status',)
    search_fields = ('name', 'slug', 'email')
    readonly_fields = ('id', 'created_at', 'updated_at')
    prepopulated_fields = {'slug': ('name',)}
    inlines = [TenantMembershipInline]

    fieldsets = (
        ('Основное', {
            'fields': ('id', 'name', 'slug', 'status')
        }),
        ('Контакты', {
            'fields': ('email', 'phone', 'website', 'logo_url')
        }),
        ('Локализация', {
            'fields': ('timezone', 'locale')
        }),
        ('Метаданные (JSON)', {
            'classes': ('collapse',),
            'fields': ('metadata',)
        }),
        ('Даты', {
            'fields': ('created_at', 'updated_at')
        }),
    )


@admin.register(TenantMembership)
class TenantMembershipAdmin(admin.ModelAdmin):
    list_display = ('user', 'tenant', 'role', 'is_active', 'joined_at')
    list_filter = ('role', 'is_active', 'tenant')
    search_fields = ('user__email', 'tenant__name')
    raw_id_fields = ('user', 'tenant')
