from django.core.management.base import BaseCommand

from core.roles import seed_roles


class Command(BaseCommand):
    help = 'Seed the lab dashboard role groups and their permissions.'

    def handle(self, *args, **options):
        for role_name in seed_roles():
            self.stdout.write(self.style.SUCCESS(f"Ensured group {role_name}"))
