# barbershop/schemas.py

from pydantic import BaseModel, Field
from enum import Enum
from datetime import date as Date
from typing import List, Optional

from barbershop.core import format_hhmm

HHMM = r"^([01]\d|2[0-3]):[0-5]\d$"


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserRole(str, Enum):
    client = "client"
    barber = "barber"
    admin = "admin"


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"


# statuses that hold a slot
ACTIVE_STATUSES = (AppointmentStatus.pending.value, AppointmentStatus.confirmed.value)


class UserPublic(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    role: UserRole


class UserCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str
    phone: str = ""
    password: str = Field(min_length=8, max_length=72)


class RoleUpdate(BaseModel):
    role: UserRole


class ServiceCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    duration_minutes: int = Field(ge=1)
    price: float = Field(ge=0)
    available: bool = True


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, ge=1)
    price: Optional[float] = Field(default=None, ge=0)
    available: Optional[bool] = None


class ServicePublic(BaseModel):
    id: int
    name: str
    description: str
    duration_minutes: int
    price: float
    available: bool


class WorkingHoursSchema(BaseModel):
    start: str = Field(pattern=HHMM)
    end: str = Field(pattern=HHMM)


class BarberPublic(BaseModel):
    id: int
    user_id: int
    name: str = ""
    specialty: str
    description: str
    experience: int
    available: bool
    working_hours: WorkingHoursSchema
    rating: float
    ratings_count: int
    completed_appointments: Optional[int] = None

    @classmethod
    def from_model(cls, barber, user=None, completed_appointments=None):
        return cls(
            id=barber.id,
            user_id=barber.user_id,
            name=user.name if user is not None else "",
            specialty=barber.specialty,
            description=barber.description,
            experience=barber.experience,
            available=barber.available,
            working_hours=WorkingHoursSchema(
                start=format_hhmm(barber.work_start_minute),
                end=format_hhmm(barber.work_end_minute),
            ),
            rating=barber.rating,
            ratings_count=barber.ratings_count,
            completed_appointments=completed_appointments,
        )


class BarberUpdate(BaseModel):
    specialty: Optional[str] = None
    description: Optional[str] = None
    experience: Optional[int] = Field(default=None, ge=0)
    working_hours: Optional[WorkingHoursSchema] = None
    available: Optional[bool] = None


class AppointmentCreate(BaseModel):
    barber_id: int
    service_id: int
    date: Date
    start_time: str = Field(pattern=HHMM)
    notes: str = ""


class AppointmentUpdate(BaseModel):
    barber_id: Optional[int] = None
    service_id: Optional[int] = None
    date: Optional[Date] = None
    start_time: Optional[str] = Field(default=None, pattern=HHMM)
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None


class RatingCreate(BaseModel):
    rating: int
    review: str = ""


class AppointmentPublic(BaseModel):
    id: int
    client_id: int
    barber_id: int
    service_id: int
    date: Date
    start_time: str
    end_time: str
    status: AppointmentStatus
    notes: str
    rating: Optional[int] = None
    review: Optional[str] = None

    @classmethod
    def from_model(cls, appt):
        return cls(
            id=appt.id,
            client_id=appt.client_id,
            barber_id=appt.barber_id,
            service_id=appt.service_id,
            date=appt.date,
            start_time=format_hhmm(appt.start_minute),
            end_time=format_hhmm(appt.end_minute),
            status=appt.status,
            notes=appt.notes,
            rating=appt.rating,
            review=appt.review,
        )


class AvailabilityResponse(BaseModel):
    barber_id: int
    date: Date
    available_starts: List[str]


class Message(BaseModel):
    message: str
