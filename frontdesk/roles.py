"""
Staff roles and the capabilities they grant.

A request's role is looked up once, from the ``users`` collection, and
frozen into a :class:`Capability`.  Permission classes and views ask the
capability what the caller may do instead of branching on role strings.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

ADMIN = 'admin'
DOCTOR = 'doctor'
CHEMIST = 'chemist'
USHER = 'usher'

ROLES = (ADMIN, DOCTOR, CHEMIST, USHER)
# Roles whose account carries a department.
ROLES_WITH_DEPT = (DOCTOR, USHER)

REGISTER_PATIENTS = 'register_patients'
VIEW_PATIENTS = 'view_patients'
VIEW_PRESCRIPTIONS = 'view_prescriptions'
MANAGE_QUEUE = 'manage_queue'
ANNOTATE = 'annotate'
MANAGE_ACCOUNTS = 'manage_accounts'

ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    ADMIN: frozenset({REGISTER_PATIENTS, VIEW_PATIENTS, VIEW_PRESCRIPTIONS, MANAGE_QUEUE, MANAGE_ACCOUNTS}),
    DOCTOR: frozenset({VIEW_PATIENTS, VIEW_PRESCRIPTIONS, ANNOTATE}),
    CHEMIST: frozenset({VIEW_PATIENTS, VIEW_PRESCRIPTIONS}),
    USHER: frozenset({REGISTER_PATIENTS, VIEW_PATIENTS, MANAGE_QUEUE}),
}

# Landing view the front end opens for each role.
ROLE_HOME = {
    ADMIN: 'admin-dashboard',
    DOCTOR: 'doctor-dashboard',
    CHEMIST: 'chemist-dashboard',
    USHER: 'usher-dashboard',
}


@dataclass(frozen=True)
class Capability:
    email: str
    role: str
    dept: str = ''
    permissions: frozenset = field(default_factory=frozenset)

    @classmethod
    def for_role(cls, email: str, role: str, dept: str = '') -> 'Capability':
        return cls(email=email, role=role, dept=dept or '', permissions=ROLE_PERMISSIONS.get(role, frozenset()))

    def allows(self, permission: str) -> bool:
        return permission in self.permissions

    @property
    def home(self) -> Optional[str]:
        return ROLE_HOME.get(self.role)

    def as_dict(self) -> dict:
        return {
            'email': self.email,
            'role': self.role,
            'dept': self.dept,
            'home': self.home,
            'permissions': sorted(self.permissions),
        }
