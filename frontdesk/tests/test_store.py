import pytest
from django.db import DatabaseError, connection
from django.test.utils import CaptureQueriesContext

from frontdesk.exceptions import NotFound, StoreUnavailable
from frontdesk.models import Document
from frontdesk.services.store import ArrayRemove, ArrayUnion, DocumentStore

pytestmark = pytest.mark.django_db


@pytest.fixture
def docs():
    return DocumentStore()


def test_get_missing_document_returns_none(docs):
    assert docs.get_by_key('patients', '1') is None


def test_set_replaces_whole_document_and_bumps_version(docs):
    docs.set_by_key('patients', '1', {'name': 'A', 'age': 3})
    docs.set_by_key('patients', '1', {'name': 'B'})
    data, version = docs.get_with_version('patients', '1')
    assert data == {'name': 'B'}
    assert version == 2


def test_returned_data_is_a_copy(docs):
    docs.set_by_key('waiting', 'eye', {'list': [1]})
    data = docs.get_by_key('waiting', 'eye')
    data['list'].append(2)
    assert docs.get_by_key('waiting', 'eye') == {'list': [1]}


def test_create_if_absent_refuses_taken_key(docs):
    assert docs.create_if_absent('patients', '7', {'name': 'first'}) is True
    assert docs.create_if_absent('patients', '7', {'name': 'second'}) is False
    assert docs.get_by_key('patients', '7') == {'name': 'first'}
    assert Document.objects.filter(collection='patients', key='7').count() == 1


def test_same_key_in_different_collections(docs):
    assert docs.create_if_absent('patients', 'x', {'a': 1})
    assert docs.create_if_absent('users', 'x', {'b': 2})


def test_update_fields_merges_dotted_paths(docs):
    docs.set_by_key('patients', '1', {'prescriptions': {'cardio': '', 'eye': 'drops'}, 'name': 'A'})
    merged = docs.update_fields('patients', '1', {'prescriptions.cardio': 'aspirin'})
    assert merged == {'prescriptions': {'cardio': 'aspirin', 'eye': 'drops'}, 'name': 'A'}


def test_update_fields_on_missing_document_returns_none(docs):
    assert docs.update_fields('patients', '404', {'name': 'x'}) is None
    assert docs.get_by_key('patients', '404') is None


def test_array_union_and_remove(docs):
    docs.set_by_key('waiting', 'ent', {'list': [1, 2]})
    docs.update_fields('waiting', 'ent', {'list': ArrayUnion(2, 3)})
    assert docs.get_by_key('waiting', 'ent')['list'] == [1, 2, 3]
    docs.update_fields('waiting', 'ent', {'list': ArrayRemove(1), 'missing': ArrayUnion(1)})
    assert docs.get_by_key('waiting', 'ent') == {'list': [2, 3], 'missing': [1]}


def test_mutate_creates_from_default(docs):
    result = docs.mutate('waiting', 'opd', lambda d: {**d, 'list': d['list'] + [5]},
                         create=True, default={'list': [], 'missing': []})
    assert result == {'list': [5], 'missing': []}


def test_mutate_error_leaves_document_unchanged(docs):
    docs.set_by_key('waiting', 'opd', {'list': [1]})

    def boom(data):
        data['list'].append(2)
        raise NotFound('nope')

    with pytest.raises(NotFound):
        docs.mutate('waiting', 'opd', boom)
    assert docs.get_by_key('waiting', 'opd') == {'list': [1]}


def test_compare_and_set_detects_stale_version(docs):
    docs.set_by_key('users', 'a@b.c', {'role': 'usher'})
    _, version = docs.get_with_version('users', 'a@b.c')
    assert docs.compare_and_set('users', 'a@b.c', version, {'role': 'doctor'}) is True
    assert docs.compare_and_set('users', 'a@b.c', version, {'role': 'chemist'}) is False
    assert docs.get_by_key('users', 'a@b.c') == {'role': 'doctor'}


def test_delete_by_key(docs):
    docs.set_by_key('users', 'a@b.c', {'role': 'usher'})
    assert docs.delete_by_key('users', 'a@b.c') is True
    assert docs.delete_by_key('users', 'a@b.c') is False


def test_scan_ordered_pages_by_field_with_cursor(docs):
    for key, name in [('1', 'mira'), ('2', 'Arun'), ('3', 'zoya'), ('4', 'bala'), ('5', 'arun')]:
        docs.set_by_key('patients', key, {'name': name})
    page, cursor = docs.scan_ordered('patients', 'name', 2)
    assert [k for k, _ in page] == ['2', '5']
    page, cursor = docs.scan_ordered('patients', 'name', 2, after=cursor)
    assert [k for k, _ in page] == ['4', '1']
    page, cursor = docs.scan_ordered('patients', 'name', 2, after=cursor)
    assert [k for k, _ in page] == ['3']
    assert cursor is None


def test_list_all_returns_every_document(docs):
    docs.set_by_key('patients', '1', {'name': 'a'})
    docs.set_by_key('patients', '2', {'name': 'b'})
    docs.set_by_key('users', 'x', {'name': 'c'})
    assert sorted(k for k, _ in docs.list_all('patients')) == ['1', '2']


def test_database_failure_becomes_store_unavailable(docs, monkeypatch):
    def broken(*args, **kwargs):
        raise DatabaseError('connection lost')

    monkeypatch.setattr(Document.objects, 'filter', broken)
    with pytest.raises(StoreUnavailable):
        docs.get_by_key('patients', '1')


def test_scan_ordered_puts_documents_without_the_field_first(docs):
    docs.set_by_key('patients', '1', {'name': 'bala'})
    docs.set_by_key('patients', '2', {'age': 40})
    docs.set_by_key('patients', '3', {'name': 'Arun'})
    docs.set_by_key('patients', '4', {})
    page, cursor = docs.scan_ordered('patients', 'name', 1)
    assert [k for k, _ in page] == ['2']
    page, cursor = docs.scan_ordered('patients', 'name', 2, after=cursor)
    assert [k for k, _ in page] == ['4', '3']
    page, cursor = docs.scan_ordered('patients', 'name', 2, after=cursor)
    assert [k for k, _ in page] == ['1']
    assert cursor is None


def test_scan_ordered_after_deleted_cursor_is_empty(docs):
    docs.set_by_key('patients', '1', {'name': 'a'})
    assert docs.scan_ordered('patients', 'name', 5, after='99') == ([], None)


def test_scan_ordered_sorts_and_limits_in_the_database(docs):
    for n in range(1, 8):
        docs.set_by_key('patients', str(n), {'name': f'p{n}'})
    with CaptureQueriesContext(connection) as ctx:
        page, _ = docs.scan_ordered('patients', 'name', 2)
    assert [k for k, _ in page] == ['1', '2']
    sql = ctx.captured_queries[-1]['sql'].upper()
    assert 'ORDER BY' in sql
    assert 'LIMIT 3' in sql
