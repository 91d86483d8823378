# barbershop/lifecycle.py
"""
Appointment status machine and the side effects hanging off it.

    pending   -> confirmed | cancelled
    confirmed -> completed | cancelled
    completed, cancelled: terminal

Leaving an active status releases the appointment's slot claims. Ratings
attach to completed appointments only and trigger a full recompute of the
barber's aggregate rating. Role changes to and from "barber" create or tear
down the barber profile, cancelling its open bookings on the way out.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlmodel import Session, select

from barbershop import config, repository
from barbershop.core import format_hhmm, parse_hhmm
from barbershop.errors import InvalidTransition, ValidationError
from barbershop.locks import rating_locks
from barbershop.models import Appointment, Barber, User
from barbershop.notifications import NotificationSender, appointment_cancelled, notify
from barbershop.permissions import Actor, can_rate, can_set_status, ensure
from barbershop.schemas import ACTIVE_STATUSES, AppointmentStatus, UserRole

logger = logging.getLogger(__name__)

TRANSITIONS = {
    AppointmentStatus.pending.value: {AppointmentStatus.confirmed.value, AppointmentStatus.cancelled.value},
    AppointmentStatus.confirmed.value: {AppointmentStatus.completed.value, AppointmentStatus.cancelled.value},
    AppointmentStatus.completed.value: set(),
    AppointmentStatus.cancelled.value: set(),
}


def check_transition(current: str, target: str) -> None:
    if target not in TRANSITIONS:
        raise ValidationError(f"Unknown status {target!r}")
    if target not in TRANSITIONS[current]:
        raise InvalidTransition(f"Cannot move appointment from {current} to {target}")


def average_rating(ratings) -> float:
    """Mean rounded half-up to one decimal; 0 when there are no ratings."""
    ratings = list(ratings)
    if not ratings:
        return 0.0
    mean = Decimal(sum(ratings)) / Decimal(len(ratings))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class AppointmentLifecycle:
    def __init__(self, session: Session, notifier: Optional[NotificationSender] = None):
        self.session = session
        self.notifier = notifier

    # -- status ---------------------------------------------------------

    def apply_status(self, appt: Appointment, status: str) -> None:
        """Move `appt` to `status` in the current transaction, without committing."""
        check_transition(appt.status, status)
        appt.status = status
        if status not in ACTIVE_STATUSES:
            repository.release_claims(self.session, appt.id)
        self.session.add(appt)

    def set_status(self, appointment_id: int, status: str, actor: Actor) -> Appointment:
        appt = repository.get_appointment(self.session, appointment_id)
        barber = self.session.get(Barber, appt.barber_id)
        ensure(can_set_status(actor, appt, barber, status))

        previous = appt.status
        self.apply_status(appt, status)
        self.session.commit()
        self.session.refresh(appt)
        logger.info("Appointment %s: %s -> %s by user %s", appt.id, previous, status, actor.user_id)

        if status == AppointmentStatus.cancelled.value:
            self.notify_cancelled(appt)
        return appt

    def cancel(self, appointment_id: int, actor: Actor) -> Appointment:
        return self.set_status(appointment_id, AppointmentStatus.cancelled.value, actor)

    def notify_cancelled(self, appt: Appointment) -> None:
        client = self.session.get(User, appt.client_id)
        if client is None:
            return
        notify(
            self.notifier,
            client.email,
            appointment_cancelled(client.name, appt.date.isoformat(), format_hhmm(appt.start_minute)),
        )

    # -- ratings --------------------------------------------------------

    def rate(self, appointment_id: int, actor: Actor, rating: int, review: str = "") -> Appointment:
        appt = repository.get_appointment(self.session, appointment_id)
        ensure(can_rate(actor, appt))
        if appt.status != AppointmentStatus.completed.value:
            raise InvalidTransition("Only completed appointments can be rated")
        if not (1 <= rating <= 5):
            raise ValidationError("Rating must be between 1 and 5")

        with rating_locks.hold(appt.barber_id):
            appt.rating = rating
            appt.review = review or ""
            self.session.add(appt)
            self.session.commit()
            self.recompute_barber_rating(appt.barber_id)

        self.session.refresh(appt)
        return appt

    def recompute_barber_rating(self, barber_id: int) -> Optional[Barber]:
        barber = self.session.get(Barber, barber_id)
        if barber is None:
            # profile removed by a demotion; ratings stay on the appointments
            return None

        ratings = [a.rating for a in repository.rated_appointments_for_barber(self.session, barber_id)]
        barber.rating = average_rating(ratings)
        barber.ratings_count = len(ratings)
        self.session.add(barber)
        self.session.commit()
        self.session.refresh(barber)
        logger.info("Barber %s rating recomputed: %s over %s ratings", barber_id, barber.rating, barber.ratings_count)
        return barber

    # -- barber role ----------------------------------------------------

    def promote_to_barber(self, user_id: int) -> Barber:
        user = repository.get_user(self.session, user_id)
        if user.role == UserRole.barber.value:
            raise InvalidTransition("User is already a barber")

        barber = repository.get_barber_by_user(self.session, user_id)
        if barber is None:
            barber = Barber(
                user_id=user_id,
                description="New barber",
                work_start_minute=parse_hhmm(config.DEFAULT_WORK_START),
                work_end_minute=parse_hhmm(config.DEFAULT_WORK_END),
            )
            self.session.add(barber)

        user.role = UserRole.barber.value
        self.session.add(user)
        self.session.commit()
        self.session.refresh(barber)
        logger.info("User %s promoted to barber %s", user_id, barber.id)
        return barber

    def demote_barber(self, barber_id: int, new_role: str = UserRole.client.value) -> int:
        """
        Cancel every open appointment of the barber, drop the profile and
        give the owning user `new_role`. Returns how many were cancelled.
        """
        if new_role == UserRole.barber.value:
            raise ValidationError("Demotion needs a non-barber role")
        barber = repository.get_barber(self.session, barber_id)

        cancelled = self._cancel_open_appointments(barber)
        user = self.session.get(User, barber.user_id)
        if user is not None:
            user.role = new_role
            self.session.add(user)
        self.session.delete(barber)
        self.session.commit()

        logger.info("Barber %s demoted to %s, %s appointments cancelled", barber_id, new_role, cancelled)
        return cancelled

    def _cancel_open_appointments(self, barber: Barber) -> int:
        open_appts = repository.active_appointments_for_barber(self.session, barber.id)
        for appt in open_appts:
            self.apply_status(appt, AppointmentStatus.cancelled.value)
        return len(open_appts)

    def change_role(self, user_id: int, role: str, actor: Actor) -> User:
        ensure(actor.is_admin, "Admin access required")
        if user_id == actor.user_id:
            raise ValidationError("You cannot change your own role")

        user = repository.get_user(self.session, user_id)
        old_role = user.role
        if role == UserRole.barber.value and old_role != UserRole.barber.value:
            self.promote_to_barber(user_id)
        elif old_role == UserRole.barber.value and role != UserRole.barber.value:
            barber = repository.get_barber_by_user(self.session, user_id)
            if barber is not None:
                self.demote_barber(barber.id, new_role=role)
            else:
                user.role = role
                self.session.add(user)
                self.session.commit()
        else:
            user.role = role
            self.session.add(user)
            self.session.commit()

        self.session.refresh(user)
        return user

    def delete_user(self, user_id: int, actor: Actor) -> None:
        ensure(actor.is_admin or actor.user_id == user_id)
        user = repository.get_user(self.session, user_id)

        barber = repository.get_barber_by_user(self.session, user_id)
        if barber is not None:
            self._cancel_open_appointments(barber)
            self.session.delete(barber)

        own = self.session.exec(select(Appointment).where(Appointment.client_id == user_id)).all()
        rated_barbers = {a.barber_id for a in own if a.rating is not None}
        for appt in own:
            repository.release_claims(self.session, appt.id)
            self.session.delete(appt)

        self.session.delete(user)
        self.session.commit()
        logger.info("User %s deleted with %s appointments", user_id, len(own))

        # their ratings left with them
        for barber_id in sorted(rated_barbers):
            with rating_locks.hold(barber_id):
                self.recompute_barber_rating(barber_id)
