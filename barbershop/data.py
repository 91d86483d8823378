# barbershop/data.py

import logging

from sqlmodel import Session, select

from barbershop import repository
from barbershop.auth import hash_password
from barbershop.lifecycle import AppointmentLifecycle
from barbershop.models import Service, User
from barbershop.schemas import UserRole

logger = logging.getLogger(__name__)

# name: (duration in minutes, price)
DEFAULT_SERVICES = {
    "Shape up": (15, 10.0),
    "Beard trim": (15, 12.0),
    "Haircut": (30, 20.0),
    "Fade": (30, 25.0),
    "Scissors cut": (30, 25.0),
    "Cut and beard": (45, 30.0),
}


def seed_services(session: Session) -> int:
    """Insert the default catalogue into an empty services table."""
    if session.exec(select(Service)).first() is not None:
        return 0
    for name, (duration, price) in DEFAULT_SERVICES.items():
        session.add(Service(name=name, duration_minutes=duration, price=price))
    session.commit()
    return len(DEFAULT_SERVICES)


def seed_admin(session: Session, email: str, password: str, name: str = "Administrator") -> User:
    """
    Make sure `email` belongs to an admin. A missing account is created with
    `password`; an existing one keeps its password and is promoted.
    """
    user = repository.get_user_by_email(session, email)
    if user is None:
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=UserRole.admin.value,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        logger.info("Created admin user %s", email)
        return user

    if user.role == UserRole.admin.value:
        return user

    barber = repository.get_barber_by_user(session, user.id)
    if barber is not None:
        AppointmentLifecycle(session).demote_barber(barber.id, new_role=UserRole.admin.value)
    else:
        user.role = UserRole.admin.value
        session.add(user)
        session.commit()
    session.refresh(user)
    logger.info("Promoted user %s to admin", email)
    return user
