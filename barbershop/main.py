# barbershop/main.py

from contextlib import asynccontextmanager

from fastapi import FastAPI

from barbershop.config import get_settings
from barbershop.db import init_db
from barbershop.logging_config import configure_logging
from barbershop.routers import (
    appointments_routes,
    availability_routes,
    barbers_routes,
    services_routes,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)
    init_db()
    yield


app = FastAPI(title="Barbershop Booking API", lifespan=lifespan)

app.include_router(availability_routes.router)
app.include_router(appointments_routes.router)
app.include_router(barbers_routes.router)
app.include_router(services_routes.router)


@app.get("/health")
def health_check():
    return {"status": "ok"}
