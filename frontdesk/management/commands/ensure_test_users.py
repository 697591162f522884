# frontdesk/management/commands/ensure_test_users.py
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from frontdesk.services.accounts import USERS
from frontdesk.services.store import store

User = get_user_model()

# (email, role, dept)
TEST_SET = [
    ("admin@clinic.test", "admin", ""),
    ("doctor@clinic.test", "doctor", "cardio"),
    ("chemist@clinic.test", "chemist", ""),
    ("usher@clinic.test", "usher", "opd"),
]

class Command(BaseCommand):
    help = "Ensure one test account per role exists with the given password (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default="Clinic@12345")

    def handle(self, *args, **opts):
        for email, role, dept in TEST_SET:
            u, created = User.objects.get_or_create(username=email, defaults={"email": email, "is_active": True})
            # Force the password and active flag back to known values
            u.set_password(opts["password"])
            u.is_active = True
            u.first_name = u.first_name or role.title()
            u.save()
            store.set_by_key(USERS, email, {
                "email": email,
                "role": role,
                "name": u.first_name,
                "dept": dept,
                "mobileNo": "9000000000",
                "age": 30,
                "address": "",
            })
            self.stdout.write(self.style.SUCCESS(f"ok: {email} ({role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
