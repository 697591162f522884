"""
Patient record lookups.

Records live in the ``patients`` collection keyed by the coupon number in
its canonical string form (``str(int)``, no padding).
"""
from typing import Optional

from django.conf import settings

from frontdesk.exceptions import NotFound, ValidationError
from frontdesk.services.store import store

PATIENTS = 'patients'
PLACEHOLDER = 'Not Available'


def parse_coupon(value) -> int:
    """Accept an int or a numeric string and return the coupon number."""
    if isinstance(value, bool):
        raise ValidationError({'couponNumber': ['coupon number must be a positive integer']})
    try:
        coupon = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError({'couponNumber': ['coupon number must be a positive integer']})
    if coupon < 1:
        raise ValidationError({'couponNumber': ['coupon number must be a positive integer']})
    return coupon


def coupon_key(coupon: int) -> str:
    return str(int(coupon))


def find_patient(coupon) -> Optional[dict]:
    return store.get_by_key(PATIENTS, coupon_key(parse_coupon(coupon)))


def get_patient(coupon) -> dict:
    record = find_patient(coupon)
    if record is None:
        raise NotFound(f'patient {coupon} not found')
    return record


def list_patients(*, after: Optional[str] = None, limit: Optional[int] = None) -> dict:
    """One page of patients ordered by name, plus the cursor for the next page."""
    limit = limit or settings.CLINIC_PAGE_SIZE
    page, cursor = store.scan_ordered(PATIENTS, 'name', limit, after=after or None)
    return {
        'results': [record for _, record in page],
        'next': cursor,
    }


def display_fields(coupon: int, record: Optional[dict]) -> dict:
    """The descriptive subset shown in queue listings."""
    record = record or {}
    return {
        'couponNumber': coupon,
        'name': record.get('name') or PLACEHOLDER,
        'age': record.get('age') or PLACEHOLDER,
        'gender': record.get('gender') or PLACEHOLDER,
        'address': record.get('address') or PLACEHOLDER,
    }
