from django.conf import settings

from frontdesk.exceptions import InvalidDepartment


def known_departments() -> list[str]:
    return list(settings.CLINIC_DEPARTMENTS)


def normalize_department(dept) -> str:
    """Return the canonical department id or raise InvalidDepartment."""
    value = str(dept or '').strip().lower()
    if value not in settings.CLINIC_DEPARTMENTS:
        raise InvalidDepartment(f'unknown department: {dept!r}')
    return value
