import pytest
from django.db import DatabaseError

from frontdesk.exceptions import AllocationReadError, StoreUnavailable, ValidationError, WriteConflict
from frontdesk.models import AuditEvent
from frontdesk.services import sequence
from frontdesk.services.patients import PATIENTS
from frontdesk.services.store import store

pytestmark = pytest.mark.django_db


def test_first_coupon_is_one():
    assert sequence.allocate_next() == 1


def test_allocate_is_max_plus_one_not_count():
    store.set_by_key(PATIENTS, '3', {'couponNumber': 3, 'name': 'a'})
    store.set_by_key(PATIENTS, '41', {'couponNumber': 41, 'name': 'b'})
    assert sequence.allocate_next() == 42


def test_allocate_falls_back_to_numeric_key():
    store.set_by_key(PATIENTS, '9', {'name': 'legacy'})
    store.set_by_key(PATIENTS, 'scratch', {'name': 'ignored'})
    assert sequence.allocate_next() == 10


def test_allocate_does_not_reserve():
    assert sequence.allocate_next() == sequence.allocate_next() == 1


def test_allocate_read_failure(monkeypatch):
    def broken(collection):
        raise StoreUnavailable()

    monkeypatch.setattr(store, 'list_all', broken)
    with pytest.raises(AllocationReadError):
        sequence.allocate_next()


def test_sequential_registrations_get_consecutive_numbers(patient_details):
    numbers = [sequence.register_patient(patient_details, ['opd'])['couponNumber'] for _ in range(3)]
    assert numbers == [1, 2, 3]
    assert store.get_by_key(PATIENTS, '2')['couponNumber'] == 2


def test_record_has_one_slot_per_treatment(patient_details):
    record = sequence.register_patient(patient_details, ['Cardio', 'eye', 'cardio'])
    assert record['treatments'] == ['cardio', 'eye']
    assert record['prescriptions'] == {'cardio': '', 'eye': ''}
    assert record['remarks'] == {'cardio': '', 'eye': ''}
    assert record['name'] == 'Asha Rao'
    assert record['mobile'] == '9876543210'
    assert record['registrationTime']


def test_registration_is_audited(patient_details):
    sequence.register_patient(patient_details, ['ent'])
    event = AuditEvent.objects.get(action='patient_register')
    assert event.object_type == 'patient'
    assert event.object_id == '1'


@pytest.mark.parametrize('field,value', [
    ('name', ''),
    ('age', 0),
    ('age', 'abc'),
    ('mobile', '12345'),
    ('mobile', '98765432100'),
    ('gender', ''),
])
def test_invalid_details_are_rejected(patient_details, field, value):
    patient_details[field] = value
    with pytest.raises(ValidationError) as exc:
        sequence.register_patient(patient_details, ['opd'])
    assert field in exc.value.detail
    assert store.list_all(PATIENTS) == []


def test_treatments_required(patient_details):
    with pytest.raises(ValidationError) as exc:
        sequence.register_patient(patient_details, [])
    assert 'treatments' in exc.value.detail


def test_unknown_treatment_rejected(patient_details):
    with pytest.raises(ValidationError) as exc:
        sequence.register_patient(patient_details, ['opd', 'neuro'])
    assert 'treatments' in exc.value.detail


def test_markup_is_stripped_from_name(patient_details):
    patient_details['name'] = '<b>Ravi</b>'
    record = sequence.register_patient(patient_details, ['opd'])
    assert record['name'] == 'Ravi'


def test_lost_race_allocates_again(monkeypatch, patient_details):
    # Another registrant already holds coupon 5 although allocation still says 5.
    store.create_if_absent(PATIENTS, '5', {'couponNumber': 5, 'name': 'first'})
    proposals = iter([5, 6])
    monkeypatch.setattr(sequence, 'allocate_next', lambda: next(proposals))
    record = sequence.register_patient(patient_details, ['opd'])
    assert record['couponNumber'] == 6
    assert store.get_by_key(PATIENTS, '5')['name'] == 'first'


def test_gives_up_after_configured_attempts(monkeypatch, settings, patient_details):
    settings.CLINIC_ALLOCATION_RETRIES = 3
    calls = []

    def always_taken(collection, key, data):
        calls.append(key)
        return False

    monkeypatch.setattr(store, 'create_if_absent', always_taken)
    with pytest.raises(WriteConflict):
        sequence.register_patient(patient_details, ['opd'])
    assert len(calls) == 3


def test_free_text_keeps_ampersand_and_angle_brackets(patient_details):
    patient_details['name'] = 'Asha & Ravi'
    patient_details['address'] = 'Flat 3 & 4, MG Road'
    record = sequence.register_patient(patient_details, ['opd'])
    assert record['name'] == 'Asha & Ravi'
    assert record['address'] == 'Flat 3 & 4, MG Road'
    assert store.get_by_key(PATIENTS, '1')['address'] == 'Flat 3 & 4, MG Road'


def test_failed_audit_write_leaves_no_patient(monkeypatch, patient_details):
    def broken(**kwargs):
        raise DatabaseError('audit table locked')

    monkeypatch.setattr(AuditEvent.objects, 'create', broken)
    with pytest.raises(StoreUnavailable):
        sequence.register_patient(patient_details, ['opd'])
    assert store.list_all(PATIENTS) == []
