import pytest
from django.urls import reverse
from rest_framework.authtoken.models import Token
from rest_framework.test import APIClient
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken

from frontdesk.models import AuditEvent, User

pytestmark = pytest.mark.django_db


def login(client, email, password):
    r = client.post(reverse('login_view'), {'email': email, 'password': password}, format='json')
    assert r.status_code in (200, 400, 403)
    return r


def test_no_role_escalation_through_login(staff):
    staff('chemist')
    client = APIClient()
    r = client.post(reverse('login_view'),
                    {'email': 'chemist@clinic.test', 'password': 'P@ssw0rd-1', 'role': 'admin'}, format='json')
    assert r.status_code == 200
    assert r.data['role'] == 'chemist'
    assert 'manage_accounts' not in r.data['capability']['permissions']


def test_user_without_profile_cannot_log_in():
    User.objects.create_user(username='walkin@clinic.test', password='P@ssw0rd-1')
    r = login(APIClient(), 'walkin@clinic.test', 'P@ssw0rd-1')
    assert r.status_code == 403
    assert r.data['error']['code'] == 'no_role'


def test_failed_login_is_audited(staff):
    staff('usher', 'opd')
    login(APIClient(), 'usher@clinic.test', 'wrong')
    event = AuditEvent.objects.get(action='login')
    assert event.detail['result'] == 'fail'
    assert event.user is None


def test_login_requires_email_and_password():
    r = APIClient().post(reverse('login_view'), {'email': 'x@clinic.test'}, format='json')
    assert r.status_code == 400
    assert r.data['error']['code'] == 'validation_error'


def test_profile_without_role_gets_no_access(staff, client_for):
    from frontdesk.services.accounts import USERS
    from frontdesk.services.store import store

    user = staff('usher', 'opd')
    store.update_fields(USERS, 'usher@clinic.test', {'role': ''})
    r = client_for(user).get(reverse('me_view'))
    assert r.status_code == 403


def test_refresh_returns_new_access(staff):
    staff('doctor', 'cardio')
    client = APIClient()
    r = login(client, 'doctor@clinic.test', 'P@ssw0rd-1')
    resp = client.post(reverse('jwt_refresh_view'), {'refresh': r.data['jwt_refresh']}, format='json')
    assert resp.status_code == 200
    assert resp.data['jwt_access']


def test_logout_blacklists_refresh_and_drops_token(staff):
    user = staff('usher', 'opd')
    client = APIClient()
    r = login(client, 'usher@clinic.test', 'P@ssw0rd-1')
    client.credentials(HTTP_AUTHORIZATION=f"Token {r.data['token']}")
    out = client.post(reverse('jwt_logout_view'), {}, format='json')
    assert out.status_code == 200
    assert out.data['blacklisted'] == 1
    assert BlacklistedToken.objects.filter(token__user=user).count() == 1
    assert not Token.objects.filter(user=user).exists()

    # The blacklisted refresh token can no longer mint access tokens.
    resp = APIClient().post(reverse('jwt_refresh_view'), {'refresh': r.data['jwt_refresh']}, format='json')
    assert resp.status_code == 401


def test_healthz():
    r = APIClient().get('/healthz')
    assert r.status_code == 200
    assert r.json()['ok'] is True
