"""
Document store on top of the :class:`frontdesk.models.Document` table.

Collections hold JSON documents addressed by a string key.  Besides plain
get/set/delete the store offers the primitives the clinic logic needs to
stay correct with several operators working at once:

* ``create_if_absent`` relies on the unique ``(collection, key)`` constraint;
* ``update_fields`` and ``mutate`` lock the row for the duration of the
  read-modify-write, so element-wise list updates never lose a write;
* ``compare_and_set`` checks the document ``version`` for callers that do
  their own optimistic concurrency.

Every database failure is re-raised as :class:`StoreUnavailable`.
"""
from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F, Q
from django.db.models.fields.json import KeyTextTransform
from django.db.models.functions import Lower
from django.utils import timezone

from frontdesk.exceptions import StoreUnavailable
from frontdesk.models import Document

logger = logging.getLogger(__name__)


class ArrayUnion:
    """Field value for ``update_fields``: append the items not yet present."""

    def __init__(self, *items: Any) -> None:
        self.items = items

    def apply(self, current: Any) -> list:
        values = list(current or [])
        for item in self.items:
            if item not in values:
                values.append(item)
        return values


class ArrayRemove:
    """Field value for ``update_fields``: drop every occurrence of the items."""

    def __init__(self, *items: Any) -> None:
        self.items = items

    def apply(self, current: Any) -> list:
        return [v for v in (current or []) if v not in self.items]


def _set_path(data: dict, path: str, value: Any) -> None:
    """Assign ``value`` at a dotted ``path``, creating intermediate maps."""
    parts = path.split('.')
    node = data
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    leaf = parts[-1]
    if isinstance(value, (ArrayUnion, ArrayRemove)):
        value = value.apply(node.get(leaf))
    node[leaf] = value


@contextmanager
def _guard(op: str, collection: str) -> Iterator[None]:
    try:
        yield
    except IntegrityError:
        raise
    except DatabaseError as exc:
        logger.error('store %s on %s failed: %s', op, collection, exc)
        raise StoreUnavailable() from exc


class DocumentStore:
    """Document-oriented access to clinic collections."""

    def get_by_key(self, collection: str, key: str) -> Optional[dict]:
        with _guard('get', collection):
            doc = Document.objects.filter(collection=collection, key=str(key)).first()
        return copy.deepcopy(doc.data) if doc else None

    def set_by_key(self, collection: str, key: str, data: dict) -> None:
        """Full replace, creating the document when absent."""
        with _guard('set', collection), transaction.atomic():
            doc, created = Document.objects.get_or_create(collection=collection, key=str(key), defaults={'data': data})
            if created:
                return
            doc = Document.objects.select_for_update().get(pk=doc.pk)
            doc.data = data
            doc.version += 1
            doc.save(update_fields=['data', 'version', 'updated_at'])

    def create_if_absent(self, collection: str, key: str, data: dict) -> bool:
        """Insert the document; return False when the key is already taken."""
        try:
            with _guard('create', collection), transaction.atomic():
                Document.objects.create(collection=collection, key=str(key), data=data)
        except IntegrityError:
            return False
        return True

    def update_fields(self, collection: str, key: str, fields: dict[str, Any]) -> Optional[dict]:
        """Merge ``fields`` (dotted paths allowed) into an existing document.

        Values may be :class:`ArrayUnion` / :class:`ArrayRemove` for
        element-wise list updates.  Returns the merged document, or ``None``
        when no document exists under ``key``.
        """
        def merge(data: dict) -> dict:
            for path, value in fields.items():
                _set_path(data, path, value)
            return data

        return self.mutate(collection, key, merge, create=False)

    def mutate(
        self,
        collection: str,
        key: str,
        fn: Callable[[dict], dict],
        *,
        create: bool = False,
        default: Optional[dict] = None,
    ) -> Optional[dict]:
        """Locked read-modify-write of a single document.

        ``fn`` receives a private copy of the current data and returns the
        new data.  Exceptions raised by ``fn`` abort the write.  With
        ``create`` the document is initialised from ``default`` when missing;
        otherwise a missing document yields ``None`` and ``fn`` is not called.
        """
        with _guard('mutate', collection), transaction.atomic():
            doc = Document.objects.select_for_update().filter(collection=collection, key=str(key)).first()
            if doc is None:
                if not create:
                    return None
                doc, _ = Document.objects.get_or_create(
                    collection=collection, key=str(key), defaults={'data': copy.deepcopy(default or {})},
                )
                doc = Document.objects.select_for_update().get(pk=doc.pk)
            new_data = fn(copy.deepcopy(doc.data))
            doc.data = new_data
            doc.version += 1
            doc.save(update_fields=['data', 'version', 'updated_at'])
        return copy.deepcopy(new_data)

    def get_with_version(self, collection: str, key: str) -> tuple[Optional[dict], int]:
        with _guard('get', collection):
            doc = Document.objects.filter(collection=collection, key=str(key)).first()
        if doc is None:
            return None, 0
        return copy.deepcopy(doc.data), doc.version

    def compare_and_set(self, collection: str, key: str, expected_version: int, data: dict) -> bool:
        """Replace the document only if its version still equals ``expected_version``."""
        with _guard('cas', collection), transaction.atomic():
            updated = Document.objects.filter(
                collection=collection, key=str(key), version=expected_version,
            ).update(data=data, version=expected_version + 1, updated_at=timezone.now())
        return bool(updated)

    def delete_by_key(self, collection: str, key: str) -> bool:
        with _guard('delete', collection):
            deleted, _ = Document.objects.filter(collection=collection, key=str(key)).delete()
        return bool(deleted)

    def scan_ordered(
        self,
        collection: str,
        order_field: str,
        limit: int,
        after: Optional[str] = None,
    ) -> tuple[list[tuple[str, dict]], Optional[str]]:
        """Return one page of ``(key, data)`` pairs ordered by ``order_field``.

        The database sorts on the lower-cased text of the field, missing
        values first, ties broken by key.  ``after`` is the cursor returned by
        the previous page (the key of its last document); the second element
        of the result is the cursor for the next page, ``None`` at the end.
        """
        with _guard('scan', collection):
            qs = Document.objects.filter(collection=collection).annotate(
                sort_value=Lower(KeyTextTransform(order_field, 'data')),
            )
            if after is not None:
                anchor = list(qs.filter(key=str(after)).values_list('sort_value', flat=True)[:1])
                if not anchor:
                    return [], None
                if anchor[0] is None:
                    qs = qs.filter(Q(sort_value__isnull=True, key__gt=str(after)) | Q(sort_value__isnull=False))
                else:
                    qs = qs.filter(Q(sort_value__gt=anchor[0]) | Q(sort_value=anchor[0], key__gt=str(after)))
            docs = list(qs.order_by(F('sort_value').asc(nulls_first=True), 'key')[:limit + 1])
        page = docs[:limit]
        cursor = page[-1].key if len(docs) > limit and page else None
        return [(d.key, copy.deepcopy(d.data)) for d in page], cursor

    def list_all(self, collection: str) -> list[tuple[str, dict]]:
        with _guard('list', collection):
            docs = list(Document.objects.filter(collection=collection).order_by('key'))
        return [(d.key, copy.deepcopy(d.data)) for d in docs]


store = DocumentStore()
