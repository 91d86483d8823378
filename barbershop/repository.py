# barbershop/repository.py
"""Query helpers over the SQLModel tables."""

from datetime import date as Date
from typing import Iterable, List, Optional

from sqlmodel import Session, select

from barbershop.errors import NotFound
from barbershop.models import Appointment, Barber, Service, SlotClaim, User
from barbershop.schemas import ACTIVE_STATUSES


def get_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def get_user_by_email(session: Session, email: str) -> Optional[User]:
    return session.exec(select(User).where(User.email == email)).first()


def get_barber(session: Session, barber_id: int) -> Barber:
    barber = session.get(Barber, barber_id)
    if barber is None:
        raise NotFound("Barber not found")
    return barber


def get_barber_by_user(session: Session, user_id: int) -> Optional[Barber]:
    return session.exec(select(Barber).where(Barber.user_id == user_id)).first()


def get_service(session: Session, service_id: int) -> Service:
    service = session.get(Service, service_id)
    if service is None:
        raise NotFound("Service not found")
    return service


def get_appointment(session: Session, appointment_id: int) -> Appointment:
    appt = session.get(Appointment, appointment_id)
    if appt is None:
        raise NotFound("Appointment not found")
    return appt


def find_appointments(
    session: Session,
    barber_id: int,
    day: Date,
    statuses: Iterable[str] = ACTIVE_STATUSES,
    exclude_id: Optional[int] = None,
) -> List[Appointment]:
    stmt = (
        select(Appointment)
        .where(Appointment.barber_id == barber_id)
        .where(Appointment.date == day)
        .where(Appointment.status.in_(list(statuses)))
    )
    if exclude_id is not None:
        stmt = stmt.where(Appointment.id != exclude_id)
    return list(session.exec(stmt.order_by(Appointment.start_minute)).all())


def active_appointments_for_barber(session: Session, barber_id: int) -> List[Appointment]:
    return list(session.exec(
        select(Appointment)
        .where(Appointment.barber_id == barber_id)
        .where(Appointment.status.in_(list(ACTIVE_STATUSES)))
    ).all())


def rated_appointments_for_barber(session: Session, barber_id: int) -> List[Appointment]:
    return list(session.exec(
        select(Appointment)
        .where(Appointment.barber_id == barber_id)
        .where(Appointment.status == "completed")
        .where(Appointment.rating.is_not(None))
    ).all())


def add_claims(session: Session, appt: Appointment) -> None:
    """Stage one SlotClaim per minute the appointment occupies."""
    session.add_all(
        SlotClaim(
            barber_id=appt.barber_id,
            date=appt.date,
            minute=minute,
            appointment_id=appt.id,
        )
        for minute in range(appt.start_minute, appt.end_minute)
    )


def release_claims(session: Session, appointment_id: int) -> None:
    claims = session.exec(
        select(SlotClaim).where(SlotClaim.appointment_id == appointment_id)
    ).all()
    for claim in claims:
        session.delete(claim)
    # deletes must reach the table before replacement claims are inserted
    session.flush()
