# barbershop/deps.py

from fastapi import HTTPException

from barbershop.notifications import SmtpEmailSender
from barbershop.permissions import Actor


def require_role(user: dict, *roles: str):
    if user["role"] not in roles:
        raise HTTPException(status_code=403, detail="Forbidden")


def actor_for(user: dict) -> Actor:
    return Actor(user_id=user["id"], role=user["role"])


# Dependency: overridden in tests with a recording sender
def get_notifier():
    return SmtpEmailSender()
