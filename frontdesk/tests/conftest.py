import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from frontdesk.models import User
from frontdesk.services.accounts import USERS
from frontdesk.services.store import store


@pytest.fixture(autouse=True)
def _clear_throttle_cache():
    # Throttle counters live in the locmem cache and would leak between tests.
    cache.clear()
    yield
    cache.clear()


def make_staff(role: str, dept: str = '', email: str | None = None, password: str = 'P@ssw0rd-1') -> User:
    email = email or f'{role}@clinic.test'
    user = User.objects.create_user(username=email, email=email, password=password, first_name=role.title())
    store.set_by_key(USERS, email, {
        'email': email,
        'role': role,
        'name': role.title(),
        'dept': dept,
        'mobileNo': '9000000000',
        'age': 40,
        'address': 'Clinic Road',
    })
    return user


@pytest.fixture
def staff(db):
    return make_staff


@pytest.fixture
def client_for(db):
    def build(user: User) -> APIClient:
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return build


@pytest.fixture
def patient_details():
    return {
        'name': 'Asha Rao',
        'age': 34,
        'gender': 'female',
        'address': '12 Lake View',
        'mobile': '9876543210',
    }
