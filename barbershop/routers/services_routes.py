# barbershop/routers/services_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from barbershop import repository
from barbershop.db import get_session
from barbershop.models import Appointment, Service
from barbershop.schemas import ServiceCreate, ServiceUpdate, ServicePublic, Message, ACTIVE_STATUSES
from barbershop.auth import get_current_user, get_optional_user
from barbershop.deps import require_role
from barbershop.errors import Conflict

router = APIRouter(
    prefix="/services",
    tags=["services"],
)


@router.get("", response_model=List[ServicePublic])
def list_services(
    include_unavailable: Optional[bool] = False,
    session: Session = Depends(get_session),
    current_user: Optional[dict] = Depends(get_optional_user),
):
    # only admins see withdrawn services
    is_admin = current_user is not None and current_user["role"] == "admin"
    stmt = select(Service).order_by(Service.id)
    if not (include_unavailable and is_admin):
        stmt = stmt.where(Service.available == True)  # noqa: E712
    return session.exec(stmt).all()


@router.get("/{service_id}", response_model=ServicePublic)
def get_service(service_id: int, session: Session = Depends(get_session)):
    return repository.get_service(session, service_id)


@router.post("", response_model=ServicePublic, status_code=201)
def create_service(
    body: ServiceCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    service = Service(**body.model_dump())
    session.add(service)
    session.commit()
    session.refresh(service)
    return service


@router.put("/{service_id}", response_model=ServicePublic)
def update_service(
    service_id: int,
    body: ServiceUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    service = repository.get_service(session, service_id)
    # existing appointments keep the duration frozen at booking time
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(service, field, value)
    session.add(service)
    session.commit()
    session.refresh(service)
    return service


@router.delete("/{service_id}", response_model=Message)
def delete_service(
    service_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    service = repository.get_service(session, service_id)

    in_use = session.exec(
        select(Appointment)
        .where(Appointment.service_id == service_id)
        .where(Appointment.status.in_(list(ACTIVE_STATUSES)))
    ).first()
    if in_use is not None:
        raise Conflict("Service has pending or confirmed appointments")

    session.delete(service)
    session.commit()
    return {"message": "Service deleted"}
