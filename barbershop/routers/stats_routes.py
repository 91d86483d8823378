# barbershop/routers/stats_routes.py

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from barbershop import repository, stats
from barbershop.db import get_session
from barbershop.auth import get_current_user
from barbershop.deps import require_role

router = APIRouter(
    prefix="/stats",
    tags=["stats"],
)


@router.get("/barber")
def barber_stats(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    barber = repository.get_barber_by_user(session, current_user["id"])
    if barber is None:
        raise HTTPException(status_code=404, detail="Barber profile not found")
    return stats.barber_stats(session, barber)


@router.get("/barbers/{barber_id}")
def barber_detailed_stats(barber_id: int, session: Session = Depends(get_session)):
    return stats.barber_detailed_stats(session, barber_id)


@router.get("/admin")
def admin_stats(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    return stats.admin_stats(session)


@router.get("/client")
def client_stats(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return stats.client_stats(session, current_user["id"])
