from fastapi import APIRouter

from parkinglot.api.v1 import (
    fines,
    payments,
    reports,
    reservations,
    sessions,
    spots,
)

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(spots.router)
api_router.include_router(sessions.router)
api_router.include_router(reservations.router)
api_router.include_router(fines.router)
api_router.include_router(payments.router)
api_router.include_router(reports.router)
