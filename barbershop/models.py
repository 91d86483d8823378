# barbershop/models.py

from typing import Optional
from datetime import datetime, timezone, date as Date

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    phone: str = ""
    password_hash: str
    role: str = "client"  # client, barber or admin
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Barber(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(index=True, unique=True)

    specialty: str = "Haircuts"
    description: str = "Professional barber."
    experience: int = 0
    available: bool = True

    # minutes since midnight, [start, end)
    work_start_minute: int = 9 * 60
    work_end_minute: int = 18 * 60

    # derived from rated appointments, see AppointmentLifecycle.recompute_barber_rating
    rating: float = 0
    ratings_count: int = 0


class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: str = ""
    duration_minutes: int
    price: float
    available: bool = True


class Appointment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # plain ids: history outlives a deleted barber profile
    client_id: int = Field(index=True)
    barber_id: int = Field(index=True)
    service_id: int

    date: Date = Field(index=True)
    start_minute: int
    end_minute: int
    status: str = "pending"
    notes: str = ""

    rating: Optional[int] = None
    review: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SlotClaim(SQLModel, table=True):
    """One row per occupied minute of an active appointment."""
    __table_args__ = (
        UniqueConstraint("barber_id", "date", "minute", name="uq_barber_day_minute"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int
    date: Date
    minute: int
    appointment_id: int = Field(index=True)
