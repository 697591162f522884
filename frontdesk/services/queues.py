"""
Per-department waiting lists.

Each department owns one document in the ``waiting`` collection holding two
ordered lists of coupon numbers: ``list`` (waiting to be seen) and
``missing`` (called but not found).  A coupon is in at most one of them.

Transitions for a (department, coupon) pair::

    Absent  --add_to_queue-------->  Queued
    Queued  --send_to_missing----->  Missing
    Queued  --remove_from_queue--->  Absent
    Missing --remove_from_missing->  Absent
    Missing --requeue_from_missing-> Queued   (only with CLINIC_ALLOW_REQUEUE)

Every transition is a locked read-modify-write of the department document,
so ushers working the same department never lose each other's updates.
Re-adding a coupon that is already queued or missing is rejected with
:class:`DuplicateEntry` rather than silently ignored.
"""
from __future__ import annotations

import logging
from typing import Callable

from django.conf import settings
from django.db import transaction

from frontdesk.exceptions import DuplicateEntry, NotFound, TransitionDisabled
from frontdesk.services.audit import log_action
from frontdesk.services.departments import normalize_department
from frontdesk.services.patients import PATIENTS, coupon_key, display_fields, find_patient, parse_coupon
from frontdesk.services.store import store

logger = logging.getLogger(__name__)

WAITING = 'waiting'

STATE_ABSENT = 'absent'
STATE_QUEUED = 'queued'
STATE_MISSING = 'missing'


def _empty() -> dict:
    return {'list': [], 'missing': []}


def _as_coupons(values) -> list[int]:
    # Documents seeded by hand may hold coupon numbers as strings.
    return [int(v) for v in values or [] if str(v).strip().isdigit()]


def _normalize(data: dict) -> dict:
    data['list'] = _as_coupons(data.get('list'))
    data['missing'] = _as_coupons(data.get('missing'))
    return data


def state_of(data: dict, coupon: int) -> str:
    if coupon in data.get('list', []):
        return STATE_QUEUED
    if coupon in data.get('missing', []):
        return STATE_MISSING
    return STATE_ABSENT


def _transition(dept, coupon, action: str, step: Callable[[dict, int], None], *, user=None) -> dict:
    dept = normalize_department(dept)
    coupon = parse_coupon(coupon)

    def apply(data: dict) -> dict:
        data = _normalize(data)
        step(data, coupon)
        return data

    with transaction.atomic():
        result = store.mutate(WAITING, dept, apply, create=True, default=_empty())
        log_action(user=user, action=f'queue_{action}', object_type='waiting', object_id=dept,
                   detail={'couponNumber': coupon})
    return {'department': dept, 'list': result['list'], 'missing': result['missing']}


def _add(data: dict, coupon: int) -> None:
    state = state_of(data, coupon)
    if state != STATE_ABSENT:
        raise DuplicateEntry(f'coupon {coupon} is already {state}')
    data['list'].append(coupon)


def _send_to_missing(data: dict, coupon: int) -> None:
    if coupon not in data['list']:
        raise NotFound(f'coupon {coupon} is not in the queue')
    data['list'].remove(coupon)
    data['missing'].append(coupon)


def _remove_from_queue(data: dict, coupon: int) -> None:
    if coupon not in data['list']:
        raise NotFound(f'coupon {coupon} is not in the queue')
    data['list'].remove(coupon)


def _remove_from_missing(data: dict, coupon: int) -> None:
    if coupon not in data['missing']:
        raise NotFound(f'coupon {coupon} is not in the missing list')
    data['missing'].remove(coupon)


def _requeue(data: dict, coupon: int) -> None:
    if coupon not in data['missing']:
        raise NotFound(f'coupon {coupon} is not in the missing list')
    data['missing'].remove(coupon)
    data['list'].append(coupon)


def add_to_queue(dept, coupon, *, user=None) -> dict:
    """Append a registered patient's coupon to the department queue."""
    dept = normalize_department(dept)
    if find_patient(coupon) is None:
        raise NotFound(f'patient {coupon} not found')
    return _transition(dept, coupon, 'add', _add, user=user)


def send_to_missing(dept, coupon, *, user=None) -> dict:
    return _transition(dept, coupon, 'send_to_missing', _send_to_missing, user=user)


def remove_from_queue(dept, coupon, *, user=None) -> dict:
    return _transition(dept, coupon, 'remove', _remove_from_queue, user=user)


def remove_from_missing(dept, coupon, *, user=None) -> dict:
    return _transition(dept, coupon, 'remove_missing', _remove_from_missing, user=user)


def requeue_from_missing(dept, coupon, *, user=None) -> dict:
    if not settings.CLINIC_ALLOW_REQUEUE:
        raise TransitionDisabled('moving a missing patient back to the queue is disabled')
    return _transition(dept, coupon, 'requeue', _requeue, user=user)


def snapshot(dept) -> dict:
    dept = normalize_department(dept)
    data = _normalize(store.get_by_key(WAITING, dept) or _empty())
    return {'department': dept, 'list': data['list'], 'missing': data['missing']}


def resolve(dept: str, coupons: list[int]) -> list[dict]:
    """Display rows for ``coupons``, in order; a missing record gets placeholders."""
    rows: list[dict] = []
    for coupon in coupons:
        record = store.get_by_key(PATIENTS, coupon_key(coupon))
        if record is None:
            logger.error('waiting/%s lists coupon %s but no patient record exists', dept, coupon)
        rows.append(display_fields(coupon, record))
    return rows


def list_queue(dept) -> list[dict]:
    snap = snapshot(dept)
    return resolve(snap['department'], snap['list'])


def list_missing(dept) -> list[dict]:
    snap = snapshot(dept)
    return resolve(snap['department'], snap['missing'])
