import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from parkinglot.api.v1.router import api_router
from parkinglot.config import settings
from parkinglot.core.logging_config import configure_logging
from parkinglot.database import async_session_maker, init_db
from parkinglot.services.facility import ParkingFacility
from parkinglot.services.reservation import ReservationLedger
from parkinglot.stores.sql import sql_stores

logger = logging.getLogger(__name__)


async def sweep_reservations(ledger: ReservationLedger, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            await ledger.expire_stale()
        except Exception:
            logger.exception("Reservation sweep failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    await init_db()
    facility = await ParkingFacility.create(sql_stores(async_session_maker), settings)
    if settings.seed_sample_data:
        await facility.seed()
    app.state.facility = facility
    sweeper = asyncio.create_task(
        sweep_reservations(facility.reservations, settings.reservation_sweep_interval_seconds)
    )
    yield
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper


app = FastAPI(
    title=settings.app_name,
    description="Parking Facility Management API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": "0.1.0",
        "environment": settings.environment,
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


def run():
    import uvicorn

    uvicorn.run(
        "parkinglot.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
