"""
Создаёт default tenant (DEFAULT_TENANT_SLUG) и, опционально, владельца.

Usage:
    python manage.py create_default_tenant
    python manage.py create_default_tenant --name "Riverside Academy" --owner-email admin@example.com
"""
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from tenants.models import Tenant, TenantMembership


class Command(BaseCommand):
    help = 'Создать default tenant и привязать к нему владельца'

    def add_arguments(self, parser):
        parser.add_argument('--slug', default=settings.DEFAULT_TENANT_SLUG)
        parser.add_argument('--name', default='Academy')
        parser.add_argument('--timezone', default=settings.TIME_ZONE)
        parser.add_argument(
            '--owner-email',
            help='Email существующего пользователя, который станет владельцем'
        )

    @transaction.atomic
    def handle(self, *args, **options):
        tenant, created = Tenant.objects.get_or_create(
            slug=options['slug'],
            defaults={
                'name': options['name'],
                'timezone': options['timezone'],
                'status': Tenant.Status.ACTIVE,
            },
        )
        if created:
            self.stdout.write(self.style.SUCCESS(f'Создан тенант: {tenant}'))
        else:
            self.stdout.write(f'Тенант уже существует: {tenant}')

        owner_email = options.get('owner_email')
        if not owner_email:
            return

        User = get_user_model()
        try:
            owner = User.objects.get(email__iexact=owner_email)
        except User.DoesNotExist:
            raise CommandError(f'Пользователь {owner_email} не найден')

        membership, _ = TenantMembership.objects.update_or_create(
            tenant=tenant, user=owner,
            defaults={'role': TenantMembership.TenantRole.OWNER, 'is_active': True},
        )
        self.stdout.write(self.style.SUCCESS(f'Владелец: {membership}'))
