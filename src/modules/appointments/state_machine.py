"""Status transition rules for appointments.

The graph and the role rules are data on `TransitionPolicy` so deployments
can relax them through settings without touching the service.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from src.core.config import settings
from src.core.exceptions import Forbidden, InvalidTransition
from src.shared.enums import AppointmentStatus, UserRole

DEFAULT_TRANSITIONS: Mapping[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED, AppointmentStatus.REJECTED}
    ),
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.REJECTED: frozenset(),
}

DEFAULT_PATIENT_TARGETS = frozenset({AppointmentStatus.CANCELLED})


@dataclass(frozen=True)
class TransitionPolicy:
    transitions: Mapping[AppointmentStatus, frozenset[AppointmentStatus]] = field(
        default_factory=lambda: dict(DEFAULT_TRANSITIONS)
    )
    patient_targets: frozenset[AppointmentStatus] = DEFAULT_PATIENT_TARGETS
    admin_override: bool = True
    enforce_graph: bool = True

    @classmethod
    def from_settings(cls) -> "TransitionPolicy":
        return cls(
            admin_override=settings.admin_status_override,
            enforce_graph=settings.enforce_status_transitions,
        )

    def allowed_targets(self, current: AppointmentStatus) -> frozenset[AppointmentStatus]:
        return self.transitions.get(current, frozenset())

    def is_allowed(self, current: AppointmentStatus, target: AppointmentStatus, role: UserRole) -> bool:
        if current == target:
            return True
        if role == UserRole.ADMIN and self.admin_override:
            return True
        if not self.enforce_graph and role != UserRole.PATIENT:
            return True
        return target in self.allowed_targets(current)

    def check_role_target(self, role: UserRole, target: AppointmentStatus) -> None:
        """Raise Forbidden when the role may never request `target`."""
        if role == UserRole.PATIENT and target not in self.patient_targets:
            allowed = ", ".join(sorted(status.value for status in self.patient_targets))
            raise Forbidden(f"Patients may only set status to: {allowed}")

    def check_transition(self, current: AppointmentStatus, target: AppointmentStatus, role: UserRole) -> None:
        self.check_role_target(role, target)
        if not self.is_allowed(current, target, role):
            raise InvalidTransition(f"Cannot change appointment status from {current.value} to {target.value}")
