# barbershop/stats.py
"""Dashboard numbers for barbers, admins and clients."""

from collections import Counter
from decimal import Decimal, ROUND_HALF_UP
from datetime import date as Date, timedelta
from typing import Optional

from sqlmodel import Session, select

from barbershop import repository
from barbershop.lifecycle import average_rating
from barbershop.models import Appointment, Barber, Service, User
from barbershop.schemas import ACTIVE_STATUSES, AppointmentStatus

COMPLETED = AppointmentStatus.completed.value
CONFIRMED = AppointmentStatus.confirmed.value


def _earnings(session: Session, appointments) -> float:
    total = 0.0
    for appt in appointments:
        service = session.get(Service, appt.service_id)
        if service is not None:
            total += service.price
    return round(total, 2)


def satisfaction_rate(ratings) -> str:
    # mean rating as a percentage of the maximum (5); "100%" until rated
    ratings = list(ratings)
    if not ratings:
        return "100%"
    percent = Decimal(sum(ratings)) / Decimal(len(ratings)) / 5 * 100
    return f"{percent.quantize(Decimal('1'), rounding=ROUND_HALF_UP)}%"


def barber_stats(session: Session, barber: Barber, today: Optional[Date] = None) -> dict:
    today = today or Date.today()
    # week starts on Sunday
    start_of_week = today - timedelta(days=(today.weekday() + 1) % 7)
    end_of_week = start_of_week + timedelta(days=7)

    appts = session.exec(select(Appointment).where(Appointment.barber_id == barber.id)).all()
    completed = [a for a in appts if a.status == COMPLETED]

    return {
        "today_appointments": sum(1 for a in appts if a.date == today),
        "weekly_appointments": sum(1 for a in appts if start_of_week <= a.date < end_of_week),
        "completed_appointments": len(completed),
        "total_earnings": _earnings(session, completed),
        "rating": barber.rating,
        "ratings_count": barber.ratings_count,
    }


def barber_detailed_stats(session: Session, barber_id: int, today: Optional[Date] = None) -> dict:
    barber = repository.get_barber(session, barber_id)
    today = today or Date.today()
    thirty_days_ago = today - timedelta(days=30)

    appts = session.exec(select(Appointment).where(Appointment.barber_id == barber_id)).all()
    completed = [a for a in appts if a.status == COMPLETED]
    served = {a.client_id for a in appts if a.status in (COMPLETED, CONFIRMED)}
    visits = Counter(a.client_id for a in completed)
    ratings = [a.rating for a in completed if a.rating]

    return {
        "completed_appointments": len(completed),
        "active_clients": len(served),
        "repeat_clients": sum(1 for n in visits.values() if n > 1),
        "satisfaction_rate": satisfaction_rate(ratings),
        "recent_appointments": sum(
            1 for a in appts
            if a.date >= thirty_days_ago and a.status in (COMPLETED, CONFIRMED)
        ),
        "total_earnings": _earnings(session, completed),
        "rating": barber.rating,
        "ratings_count": barber.ratings_count,
    }


def admin_stats(session: Session, today: Optional[Date] = None) -> dict:
    today = today or Date.today()
    appts = session.exec(select(Appointment)).all()
    completed = [a for a in appts if a.status == COMPLETED]

    top = session.exec(
        select(Barber).where(Barber.rating > 0).order_by(Barber.rating.desc())
    ).first()
    top_barber = None
    if top is not None:
        user = session.get(User, top.user_id)
        top_barber = {"name": user.name if user else "", "rating": top.rating}

    return {
        "total_users": len(session.exec(select(User)).all()),
        "total_confirmed_appointments": sum(1 for a in appts if a.status == CONFIRMED),
        "total_completed_appointments": len(completed),
        "total_revenue": _earnings(session, completed),
        "today_appointments": sum(1 for a in appts if a.date == today),
        "top_barber": top_barber,
    }


def client_stats(session: Session, client_id: int, today: Optional[Date] = None) -> dict:
    today = today or Date.today()
    appts = session.exec(select(Appointment).where(Appointment.client_id == client_id)).all()
    ratings = [a.rating for a in appts if a.rating]

    return {
        "upcoming_appointments": sum(1 for a in appts if a.status in ACTIVE_STATUSES and a.date >= today),
        "completed_appointments": sum(1 for a in appts if a.status == COMPLETED),
        "favorite_barbers": len({a.barber_id for a in appts}),
        "average_rating": average_rating(ratings),
    }
