# barbershop/booking.py

import logging
from datetime import date as Date
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from barbershop import config, repository
from barbershop.core import TimeRange, WorkingHours, available_slots, format_hhmm
from barbershop.errors import Conflict, InvalidTransition, ValidationError
from barbershop.lifecycle import AppointmentLifecycle, check_transition
from barbershop.locks import booking_locks
from barbershop.models import Appointment, Barber, User
from barbershop.notifications import NotificationSender, appointment_confirmation, notify
from barbershop.permissions import Actor, can_modify, can_set_status, ensure
from barbershop.schemas import ACTIVE_STATUSES, AppointmentStatus

logger = logging.getLogger(__name__)


def occupied_ranges(appointments) -> List[TimeRange]:
    return [TimeRange(a.start_minute, a.end_minute) for a in appointments]


class ConflictChecker:
    """Pre-flight overlap check against a barber's open bookings for one day."""

    def __init__(self, session: Session):
        self.session = session

    def can_book(
        self,
        barber_id: int,
        day: Date,
        candidate: TimeRange,
        exclude_appointment_id: Optional[int] = None,
    ) -> bool:
        existing = repository.find_appointments(
            self.session, barber_id, day, ACTIVE_STATUSES, exclude_id=exclude_appointment_id
        )
        return not any(candidate.overlaps(r) for r in occupied_ranges(existing))


class BookingService:
    def __init__(
        self,
        session: Session,
        notifier: Optional[NotificationSender] = None,
        granularity: Optional[int] = None,
    ):
        self.session = session
        self.notifier = notifier
        self.granularity = granularity or config.SLOT_MINUTES
        self.checker = ConflictChecker(session)
        self.lifecycle = AppointmentLifecycle(session, notifier)

    # -- availability ---------------------------------------------------

    def availability(self, barber_id: int, day: Date) -> List[int]:
        barber = repository.get_barber(self.session, barber_id)
        booked = repository.find_appointments(self.session, barber_id, day, ACTIVE_STATUSES)
        hours = WorkingHours(barber.work_start_minute, barber.work_end_minute)
        return available_slots(hours, occupied_ranges(booked), self.granularity)

    # -- validation -----------------------------------------------------

    def _candidate(self, barber: Barber, service_id: int, day: Date, start_minute: int,
                   today: Optional[Date]) -> TimeRange:
        service = repository.get_service(self.session, service_id)
        if service.duration_minutes <= 0:
            raise ValidationError("Service duration must be positive")

        if day < (today or Date.today()):
            raise ValidationError("Cannot book an appointment in the past")

        candidate = TimeRange.from_start(start_minute, service.duration_minutes)
        hours = WorkingHours(barber.work_start_minute, barber.work_end_minute)
        if not hours.contains(candidate):
            raise ValidationError("Appointment must be within working hours")
        return candidate

    # -- writes ---------------------------------------------------------

    def _commit_with_claims(self, appt: Appointment) -> None:
        """
        Commit the appointment together with its slot claims. The unique
        constraint on claims rejects a concurrent overlapping write even when
        both requests passed the pre-flight check.
        """
        try:
            self.session.add(appt)
            self.session.flush()
            if appt.status in ACTIVE_STATUSES:
                repository.add_claims(self.session, appt)
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise Conflict("The barber is not available at that time")

    def create(
        self,
        actor: Actor,
        barber_id: int,
        service_id: int,
        day: Date,
        start_minute: int,
        notes: str = "",
        today: Optional[Date] = None,
    ) -> Appointment:
        barber = repository.get_barber(self.session, barber_id)
        candidate = self._candidate(barber, service_id, day, start_minute, today)

        with booking_locks.hold((barber_id, day)):
            if not self.checker.can_book(barber_id, day, candidate):
                raise Conflict("The barber is not available at that time")

            appt = Appointment(
                client_id=actor.user_id,
                barber_id=barber_id,
                service_id=service_id,
                date=day,
                start_minute=candidate.start,
                end_minute=candidate.end,
                notes=notes or "",
            )
            self._commit_with_claims(appt)

        self.session.refresh(appt)
        logger.info("Appointment %s booked: barber %s on %s %s", appt.id, barber_id, day, candidate)
        self._notify_booked(appt, barber)
        return appt

    def update(
        self,
        appointment_id: int,
        actor: Actor,
        barber_id: Optional[int] = None,
        service_id: Optional[int] = None,
        day: Optional[Date] = None,
        start_minute: Optional[int] = None,
        status: Optional[str] = None,
        notes: Optional[str] = None,
        today: Optional[Date] = None,
    ) -> Appointment:
        appt = repository.get_appointment(self.session, appointment_id)
        current_barber = self.session.get(Barber, appt.barber_id)
        ensure(can_modify(actor, appt, current_barber))

        reschedule = (
            (barber_id is not None and barber_id != appt.barber_id)
            or (service_id is not None and service_id != appt.service_id)
            or (day is not None and day != appt.date)
            or (start_minute is not None and start_minute != appt.start_minute)
        )

        if status is not None and status != appt.status:
            ensure(can_set_status(actor, appt, current_barber, status))
            check_transition(appt.status, status)
        else:
            status = None

        if not reschedule:
            # pure status / notes change: no conflict check
            if status is not None:
                self.lifecycle.apply_status(appt, status)
            if notes is not None:
                appt.notes = notes
            self.session.add(appt)
            self.session.commit()
            self.session.refresh(appt)
            self._notify_status(appt, status)
            return appt

        if appt.status not in ACTIVE_STATUSES:
            raise InvalidTransition("Only pending or confirmed appointments can be rescheduled")

        target_barber_id = barber_id if barber_id is not None else appt.barber_id
        target_service_id = service_id if service_id is not None else appt.service_id
        target_day = day if day is not None else appt.date
        target_start = start_minute if start_minute is not None else appt.start_minute

        target_barber = repository.get_barber(self.session, target_barber_id)
        candidate = self._candidate(target_barber, target_service_id, target_day, target_start, today)

        with booking_locks.hold((target_barber_id, target_day)):
            if not self.checker.can_book(target_barber_id, target_day, candidate, exclude_appointment_id=appt.id):
                raise Conflict("The barber is not available at that time")

            repository.release_claims(self.session, appt.id)
            appt.barber_id = target_barber_id
            appt.service_id = target_service_id
            appt.date = target_day
            appt.start_minute = candidate.start
            appt.end_minute = candidate.end
            if status is not None:
                self.lifecycle.apply_status(appt, status)
            if notes is not None:
                appt.notes = notes
            self._commit_with_claims(appt)

        self.session.refresh(appt)
        logger.info("Appointment %s rescheduled: barber %s on %s %s", appt.id, target_barber_id, target_day, candidate)
        self._notify_status(appt, status)
        return appt

    def _notify_status(self, appt: Appointment, status: Optional[str]) -> None:
        if status == AppointmentStatus.cancelled.value:
            self.lifecycle.notify_cancelled(appt)

    def _notify_booked(self, appt: Appointment, barber: Barber) -> None:
        client = self.session.get(User, appt.client_id)
        barber_user = self.session.get(User, barber.user_id)
        service = repository.get_service(self.session, appt.service_id)
        if client is None:
            return
        template = appointment_confirmation(
            client.name,
            appt.date.strftime("%A, %B %d, %Y"),
            format_hhmm(appt.start_minute),
            barber_user.name if barber_user is not None else "your barber",
            service.name,
        )
        notify(self.notifier, client.email, template)
