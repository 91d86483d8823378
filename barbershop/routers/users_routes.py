# barbershop/routers/users_routes.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop import repository
from barbershop.db import get_session
from barbershop.models import User
from barbershop.schemas import UserCreate, UserPublic, RoleUpdate, Message
from barbershop.auth import get_current_user, hash_password
from barbershop.deps import actor_for, require_role
from barbershop.lifecycle import AppointmentLifecycle

router = APIRouter(
    tags=["users"],
)


def _public(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
        "role": user.role,
    }


@router.get("/me", response_model=UserPublic)
def me(current_user: dict = Depends(get_current_user)):
    return current_user


@router.post("/users", status_code=201, response_model=UserPublic)
def create_user(
    user: UserCreate,
    session: Session = Depends(get_session),
):
    # 1) Check if email already exists
    if repository.get_user_by_email(session, user.email) is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    # 2) Create user in DB; everyone signs up as a client
    db_user = User(
        name=user.name,
        email=user.email,
        phone=user.phone,
        password_hash=hash_password(user.password),
        role="client",
    )

    session.add(db_user)
    session.commit()
    session.refresh(db_user)  # fills db_user.id

    return _public(db_user)


@router.get("/users", response_model=List[UserPublic])
def list_users(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    users = session.exec(select(User).order_by(User.id)).all()
    return [_public(u) for u in users]


@router.put("/users/{user_id}/role", response_model=UserPublic)
def update_user_role(
    user_id: int,
    body: RoleUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    user = AppointmentLifecycle(session).change_role(user_id, body.role.value, actor_for(current_user))
    return _public(user)


@router.delete("/users/{user_id}", response_model=Message)
def delete_user(
    user_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    AppointmentLifecycle(session).delete_user(user_id, actor_for(current_user))
    return {"message": "User deleted"}
