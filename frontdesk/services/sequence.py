"""
Coupon number allocation and patient registration.

``allocate_next`` only computes ``max(couponNumber) + 1``; it reserves
nothing.  ``register_patient`` closes the read-then-write race by creating
the record with an insert-if-absent write and, when another registrant got
there first, allocating again.  After ``CLINIC_ALLOCATION_RETRIES`` lost
races it gives up with :class:`WriteConflict`.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from frontdesk.exceptions import AllocationReadError, StoreUnavailable, ValidationError, WriteConflict
from frontdesk.serializers.patient import PatientRegistrationSerializer
from frontdesk.services.audit import log_action
from frontdesk.services.patients import PATIENTS, coupon_key
from frontdesk.services.store import store

logger = logging.getLogger(__name__)


def _coupon_of(key: str, data: dict) -> int:
    value = data.get('couponNumber')
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return int(key) if key.isdigit() else 0


def allocate_next() -> int:
    try:
        docs = store.list_all(PATIENTS)
    except StoreUnavailable as exc:
        raise AllocationReadError() from exc
    highest = 0
    for key, data in docs:
        highest = max(highest, _coupon_of(key, data))
    return highest + 1


def validate_registration(details: dict, treatments: Optional[Iterable[str]]) -> dict:
    payload = dict(details or {})
    payload['treatments'] = list(treatments or [])
    s = PatientRegistrationSerializer(data=payload)
    if not s.is_valid():
        raise ValidationError(s.errors)
    return dict(s.validated_data)


def build_record(coupon: int, vd: dict) -> dict:
    unset = settings.CLINIC_UNSET
    treatments = list(vd['treatments'])
    return {
        'couponNumber': coupon,
        'name': vd['name'],
        'age': vd['age'],
        'gender': vd['gender'],
        'address': vd.get('address', ''),
        'mobile': vd['mobile'],
        'treatments': treatments,
        'prescriptions': {dept: unset for dept in treatments},
        'remarks': {dept: unset for dept in treatments},
        'registrationTime': timezone.now().isoformat(),
    }


def register_patient(details: dict, treatments: Optional[Iterable[str]], *, user=None) -> dict:
    """Validate, allocate a coupon number and persist the new patient record."""
    vd = validate_registration(details, treatments)
    attempts = max(1, settings.CLINIC_ALLOCATION_RETRIES)
    for attempt in range(1, attempts + 1):
        coupon = allocate_next()
        record = build_record(coupon, vd)
        with transaction.atomic():
            created = store.create_if_absent(PATIENTS, coupon_key(coupon), record)
            if created:
                log_action(user=user, action='patient_register', object_type='patient', object_id=coupon,
                           detail={'treatments': record['treatments'], 'attempt': attempt})
        if created:
            return record
        logger.warning('coupon %s taken by a concurrent registration (attempt %d/%d)', coupon, attempt, attempts)
    raise WriteConflict()
