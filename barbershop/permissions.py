# barbershop/permissions.py

from dataclasses import dataclass
from typing import Optional

from barbershop.errors import Unauthorized
from barbershop.models import Appointment, Barber
from barbershop.schemas import AppointmentStatus, UserRole


@dataclass(frozen=True)
class Actor:
    """Who is asking. Supplied by the caller; the core never authenticates."""
    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin.value


def is_assigned_barber(actor: Actor, barber: Optional[Barber]) -> bool:
    return barber is not None and barber.user_id == actor.user_id


def can_view(actor: Actor, appt: Appointment, barber: Optional[Barber]) -> bool:
    return actor.is_admin or appt.client_id == actor.user_id or is_assigned_barber(actor, barber)


def can_modify(actor: Actor, appt: Appointment, barber: Optional[Barber]) -> bool:
    # owner client, assigned barber, or admin
    return can_view(actor, appt, barber)


def can_set_status(actor: Actor, appt: Appointment, barber: Optional[Barber], status: str) -> bool:
    if actor.is_admin or is_assigned_barber(actor, barber):
        return True
    return status == AppointmentStatus.cancelled.value and appt.client_id == actor.user_id


def can_rate(actor: Actor, appt: Appointment) -> bool:
    return appt.client_id == actor.user_id


def ensure(allowed: bool, detail: str = "Not authorized") -> None:
    if not allowed:
        raise Unauthorized(detail)
