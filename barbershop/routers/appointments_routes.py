# barbershop/routers/appointments_routes.py

from datetime import date as Date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop import repository
from barbershop.booking import BookingService
from barbershop.core import parse_hhmm
from barbershop.db import get_session
from barbershop.models import Appointment, Barber
from barbershop.schemas import (
    AppointmentCreate,
    AppointmentPublic,
    AppointmentUpdate,
    RatingCreate,
)
from barbershop.auth import get_current_user
from barbershop.deps import actor_for, get_notifier, require_role
from barbershop.lifecycle import AppointmentLifecycle
from barbershop.permissions import can_view, ensure

router = APIRouter(
    prefix="/appointments",
    tags=["appointments"],
)


def _public_list(appts) -> List[AppointmentPublic]:
    return [AppointmentPublic.from_model(a) for a in appts]


def _my_barber(session: Session, current_user: dict) -> Barber:
    barber = repository.get_barber_by_user(session, current_user["id"])
    if barber is None:
        raise HTTPException(status_code=404, detail="Barber profile not found")
    return barber


@router.post("", response_model=AppointmentPublic, status_code=201)
def create_appointment(
    appt: AppointmentCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    notifier=Depends(get_notifier),
):
    created = BookingService(session, notifier).create(
        actor_for(current_user),
        barber_id=appt.barber_id,
        service_id=appt.service_id,
        day=appt.date,
        start_minute=parse_hhmm(appt.start_time),
        notes=appt.notes,
    )
    return AppointmentPublic.from_model(created)


@router.get("/me", response_model=List[AppointmentPublic])
def list_my_appointments(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    stmt = (
        select(Appointment)
        .where(Appointment.client_id == current_user["id"])
        .order_by(Appointment.date.desc(), Appointment.start_minute.desc())
    )
    return _public_list(session.exec(stmt).all())


@router.get("/barber", response_model=List[AppointmentPublic])
def list_barber_appointments(
    status: Optional[str] = None,
    on_date: Optional[Date] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    barber = _my_barber(session, current_user)

    stmt = select(Appointment).where(Appointment.barber_id == barber.id)
    if on_date is not None:
        stmt = stmt.where(Appointment.date == on_date)
    if status is not None:
        stmt = stmt.where(Appointment.status == status)

    stmt = stmt.order_by(Appointment.date.desc(), Appointment.start_minute.desc())
    return _public_list(session.exec(stmt).all())


@router.get("/by-date", response_model=List[AppointmentPublic])
def list_appointments_by_date(
    date: Date,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    stmt = select(Appointment).where(Appointment.date == date)

    # barbers see their own book, clients their own bookings, admins everything
    if current_user["role"] == "barber":
        barber = repository.get_barber_by_user(session, current_user["id"])
        if barber is not None:
            stmt = stmt.where(Appointment.barber_id == barber.id)
    elif current_user["role"] == "client":
        stmt = stmt.where(Appointment.client_id == current_user["id"])

    return _public_list(session.exec(stmt.order_by(Appointment.start_minute)).all())


@router.get("", response_model=List[AppointmentPublic])
def list_all_appointments(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    stmt = select(Appointment).order_by(Appointment.date.desc(), Appointment.start_minute.desc())
    return _public_list(session.exec(stmt).all())


@router.get("/{appt_id}", response_model=AppointmentPublic)
def get_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    appt = repository.get_appointment(session, appt_id)
    ensure(can_view(actor_for(current_user), appt, session.get(Barber, appt.barber_id)))
    return AppointmentPublic.from_model(appt)


@router.put("/{appt_id}", response_model=AppointmentPublic)
def update_appointment(
    appt_id: int,
    body: AppointmentUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    notifier=Depends(get_notifier),
):
    updated = BookingService(session, notifier).update(
        appt_id,
        actor_for(current_user),
        barber_id=body.barber_id,
        service_id=body.service_id,
        day=body.date,
        start_minute=parse_hhmm(body.start_time) if body.start_time else None,
        status=body.status.value if body.status else None,
        notes=body.notes,
    )
    return AppointmentPublic.from_model(updated)


@router.patch("/{appt_id}/cancel", response_model=AppointmentPublic)
def cancel_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    notifier=Depends(get_notifier),
):
    appt = AppointmentLifecycle(session, notifier).cancel(appt_id, actor_for(current_user))
    return AppointmentPublic.from_model(appt)


@router.post("/{appt_id}/rate", response_model=AppointmentPublic)
def rate_appointment(
    appt_id: int,
    body: RatingCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    appt = AppointmentLifecycle(session).rate(appt_id, actor_for(current_user), body.rating, body.review)
    return AppointmentPublic.from_model(appt)
