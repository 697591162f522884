from django.http import JsonResponse

from frontdesk.exceptions import StoreUnavailable
from frontdesk.services.departments import known_departments
from frontdesk.services.queues import WAITING
from frontdesk.services.store import store


def healthz(request):
    """Liveness plus a read of the waiting lists; 503 when the store is down."""
    try:
        seeded = {key for key, _ in store.list_all(WAITING)}
    except StoreUnavailable as e:
        return JsonResponse({'ok': False, 'error': str(e.detail)}, status=503)
    depts = known_departments()
    return JsonResponse({
        'ok': True,
        'departments': len(depts),
        'unseeded': [d for d in depts if d not in seeded],
    })
