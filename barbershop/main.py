# barbershop/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session

from barbershop import config
from barbershop.data import seed_admin, seed_services
from barbershop.db import create_db_and_tables, engine
from barbershop.errors import BookingError
from barbershop.routers import (
    appointments_routes,
    auth_routes,
    barbers_routes,
    services_routes,
    stats_routes,
    users_routes,
)

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    with Session(engine) as session:
        if config.SEED_SERVICES:
            added = seed_services(session)
            if added:
                logger.info("Seeded %s default services", added)
        if config.ADMIN_EMAIL and config.ADMIN_PASSWORD:
            seed_admin(session, config.ADMIN_EMAIL, config.ADMIN_PASSWORD, config.ADMIN_NAME)
    yield


app = FastAPI(title="Barbershop booking API", lifespan=lifespan)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    logger.info("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.get("/health")
def health_check():
    return {"status": "ok"}


app.include_router(auth_routes.router)
app.include_router(users_routes.router)
app.include_router(services_routes.router)
app.include_router(barbers_routes.router)
app.include_router(appointments_routes.router)
app.include_router(stats_routes.router)
