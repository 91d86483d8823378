# barbershop/routers/barbers_routes.py

from datetime import date as Date
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop import repository
from barbershop.booking import BookingService
from barbershop.core import format_hhmm, parse_hhmm
from barbershop.db import get_session
from barbershop.errors import ValidationError
from barbershop.models import Appointment, Barber, User
from barbershop.schemas import BarberPublic, BarberUpdate, AvailabilityResponse, Message
from barbershop.lifecycle import AppointmentLifecycle
from barbershop.auth import get_current_user
from barbershop.deps import actor_for, require_role
from barbershop.permissions import ensure, is_assigned_barber

router = APIRouter(
    prefix="/barbers",
    tags=["barbers"],
)


def _completed_count(session: Session, barber_id: int) -> int:
    return len(session.exec(
        select(Appointment)
        .where(Appointment.barber_id == barber_id)
        .where(Appointment.status == "completed")
    ).all())


def _apply_update(session: Session, barber: Barber, body: BarberUpdate) -> Barber:
    if body.specialty is not None:
        barber.specialty = body.specialty
    if body.description is not None:
        barber.description = body.description
    if body.experience is not None:
        barber.experience = body.experience
    if body.available is not None:
        barber.available = body.available
    if body.working_hours is not None:
        start = parse_hhmm(body.working_hours.start)
        end = parse_hhmm(body.working_hours.end)
        if start >= end:
            raise ValidationError("Working hours must start before they end")
        barber.work_start_minute = start
        barber.work_end_minute = end

    session.add(barber)
    session.commit()
    session.refresh(barber)
    return barber


@router.get("", response_model=List[BarberPublic])
def list_barbers(session: Session = Depends(get_session)):
    barbers = session.exec(select(Barber).where(Barber.available == True)).all()  # noqa: E712
    return [
        BarberPublic.from_model(b, session.get(User, b.user_id), _completed_count(session, b.id))
        for b in barbers
    ]


@router.get("/me", response_model=BarberPublic)
def get_my_profile(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    barber = repository.get_barber_by_user(session, current_user["id"])
    if barber is None:
        raise HTTPException(status_code=404, detail="Barber profile not found")
    return BarberPublic.from_model(barber, session.get(User, barber.user_id))


@router.put("/me", response_model=BarberPublic)
def update_my_profile(
    body: BarberUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    barber = repository.get_barber_by_user(session, current_user["id"])
    if barber is None:
        raise HTTPException(status_code=404, detail="Barber profile not found")
    barber = _apply_update(session, barber, body)
    return BarberPublic.from_model(barber, session.get(User, barber.user_id))


@router.get("/{barber_id}", response_model=BarberPublic)
def get_barber(barber_id: int, session: Session = Depends(get_session)):
    barber = repository.get_barber(session, barber_id)
    return BarberPublic.from_model(barber, session.get(User, barber.user_id), _completed_count(session, barber_id))


@router.put("/{barber_id}", response_model=BarberPublic)
def update_barber(
    barber_id: int,
    body: BarberUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    barber = repository.get_barber(session, barber_id)
    actor = actor_for(current_user)
    ensure(actor.is_admin or is_assigned_barber(actor, barber))
    barber = _apply_update(session, barber, body)
    return BarberPublic.from_model(barber, session.get(User, barber.user_id))


@router.get("/{barber_id}/availability", response_model=AvailabilityResponse)
def barber_availability(
    barber_id: int,
    date: Date,
    session: Session = Depends(get_session),
):
    starts = BookingService(session).availability(barber_id, date)
    return {
        "barber_id": barber_id,
        "date": date,
        "available_starts": [format_hhmm(m) for m in starts],
    }


@router.delete("/{barber_id}", response_model=Message)
def demote_barber(
    barber_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    cancelled = AppointmentLifecycle(session).demote_barber(barber_id)
    return {"message": f"Barber removed, {cancelled} appointments cancelled"}
