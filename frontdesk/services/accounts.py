"""
Staff account management.

A staff account is two halves kept in step: the login identity (Django
``User``, ``username`` = email) and the profile document in the ``users``
collection, keyed by the same lower-cased email, which holds the role.
"""
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import transaction

from frontdesk.exceptions import DuplicateEntry, NotFound, ValidationError
from frontdesk.roles import ADMIN, ROLES_WITH_DEPT, Capability
from frontdesk.serializers.account import AccountCreateSerializer, AccountUpdateSerializer
from frontdesk.services.audit import log_action
from frontdesk.services.store import store

User = get_user_model()

USERS = 'users'


def _key(email) -> str:
    return str(email or '').strip().lower()


def create_account(data: dict, *, user=None) -> dict:
    s = AccountCreateSerializer(data=data)
    if not s.is_valid():
        raise ValidationError(s.errors)
    vd = s.validated_data
    email = vd['email']
    if store.get_by_key(USERS, email) is not None or User.objects.filter(username=email).exists():
        raise DuplicateEntry(f'user {email} already exists')
    profile = {
        'email': email,
        'role': vd['role'],
        'name': vd['name'],
        'dept': vd['dept'],
        'mobileNo': vd['mobileNo'],
        'age': vd['age'],
        'address': vd['address'],
    }
    with transaction.atomic():
        User.objects.create_user(username=email, email=email, password=vd['password'], first_name=vd['name'])
        if not store.create_if_absent(USERS, email, profile):
            raise DuplicateEntry(f'user {email} already exists')
        log_action(user=user, action='account_create', object_type='user', object_id=email,
                   detail={'role': vd['role']})
    return profile


def list_accounts() -> list[dict]:
    return [profile for _, profile in store.list_all(USERS)]


def get_account(email) -> dict:
    profile = store.get_by_key(USERS, _key(email))
    if profile is None:
        raise NotFound(f'user {email} not found')
    return profile


def update_account(email, fields: dict, *, user=None) -> dict:
    key = _key(email)
    s = AccountUpdateSerializer(data=fields, partial=True)
    if not s.is_valid():
        raise ValidationError(s.errors)
    changes = dict(s.validated_data)

    def merge(data: dict) -> dict:
        data.update(changes)
        if data.get('role') not in ROLES_WITH_DEPT:
            data['dept'] = ''
        elif not data.get('dept'):
            raise ValidationError({'dept': ['department is required for this role']})
        return data

    with transaction.atomic():
        profile = store.mutate(USERS, key, merge)
        if profile is None:
            raise NotFound(f'user {email} not found')
        if 'name' in changes:
            User.objects.filter(username=key).update(first_name=changes['name'])
        log_action(user=user, action='account_update', object_type='user', object_id=key,
                   detail={'fields': sorted(changes)})
    return profile


def delete_account(email, *, user=None) -> None:
    key = _key(email)
    with transaction.atomic():
        removed_doc = store.delete_by_key(USERS, key)
        removed_users, _ = User.objects.filter(username=key).delete()
        if not removed_doc and not removed_users:
            raise NotFound(f'user {email} not found')
        log_action(user=user, action='account_delete', object_type='user', object_id=key)


def resolve_capability(user) -> Optional[Capability]:
    """Freeze the caller's role into a Capability, or None when they have none."""
    if not (user and getattr(user, 'is_authenticated', False)):
        return None
    profile = store.get_by_key(USERS, _key(user.username))
    if profile and profile.get('role'):
        return Capability.for_role(profile.get('email') or user.username, profile['role'], profile.get('dept', ''))
    if user.is_superuser:
        return Capability.for_role(user.username, ADMIN)
    return None
