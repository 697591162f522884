from django.core.management.base import BaseCommand

from frontdesk.services.departments import known_departments
from frontdesk.services.queues import WAITING
from frontdesk.services.store import store


class Command(BaseCommand):
    help = "Create the waiting-list document of every configured department (idempotent)."

    def handle(self, *args, **options):
        created = 0
        for dept in known_departments():
            if store.create_if_absent(WAITING, dept, {'list': [], 'missing': []}):
                created += 1
                self.stdout.write(f"created waiting/{dept}")
        self.stdout.write(self.style.SUCCESS(f"{created} created, {len(known_departments()) - created} already present"))
