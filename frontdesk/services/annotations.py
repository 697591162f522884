from django.db import transaction

from frontdesk.exceptions import InvalidDepartment, NotFound
from frontdesk.services.audit import log_action
from frontdesk.services.patients import PATIENTS, coupon_key, get_patient, parse_coupon
from frontdesk.services.store import store
from frontdesk.services.text import clean_text


def permitted_departments(coupon) -> list[str]:
    """Departments a doctor may annotate for this patient (the record's treatments)."""
    return list(dict.fromkeys(get_patient(coupon).get('treatments') or []))


def update_annotation(coupon, dept, prescription: str, remark: str, *, user=None) -> dict:
    """Write the prescription and remark of one department.

    Only ``prescriptions.<dept>`` and ``remarks.<dept>`` are touched; the
    membership check and the merge happen under the record's row lock, so a
    doctor saving another department at the same time is not overwritten.
    """
    coupon = parse_coupon(coupon)
    dept = str(dept or '').strip().lower()
    prescription = clean_text(prescription)
    remark = clean_text(remark)

    def merge(data: dict) -> dict:
        if dept not in (data.get('treatments') or []):
            raise InvalidDepartment(f'{dept!r} is not among the treatments of patient {coupon}')
        data.setdefault('prescriptions', {})[dept] = prescription
        data.setdefault('remarks', {})[dept] = remark
        return data

    with transaction.atomic():
        record = store.mutate(PATIENTS, coupon_key(coupon), merge)
        if record is None:
            raise NotFound(f'patient {coupon} not found')
        log_action(user=user, action='patient_annotate', object_type='patient', object_id=coupon,
                   detail={'dept': dept})
    return record
