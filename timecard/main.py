from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from timecard import database
from timecard.core.errors import TimecardError
from timecard.core.logging import configure_logging
from timecard.models import business, confirmed_hours, employee, employee_rate, payment_record, schedule  # noqa: F401
from timecard.routers.auth import router as auth_router
from timecard.routers.businesses import router as businesses_router
from timecard.routers.hours import router as hours_router
from timecard.routers.payments import router as payments_router
from timecard.routers.schedules import router as schedules_router
from timecard.services.payment_immutability import install_payment_immutability

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    database.configure_database()
    install_payment_immutability(database.engine)
    yield


app = FastAPI(
    title="Timecard Payroll",
    lifespan=lifespan,
)


@app.exception_handler(TimecardError)
async def handle_timecard_error(request: Request, exc: TimecardError):
    logger.info(
        "request.rejected",
        extra={"path": request.url.path, "error": exc.code, "status_code": exc.status_code},
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.middleware("http")
async def catch_unhandled_exceptions(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled exception")
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


app.include_router(auth_router)
app.include_router(businesses_router)
app.include_router(schedules_router)
app.include_router(hours_router)
app.include_router(payments_router)


@app.get("/")
def root():
    return {"status": "Timecard Payroll running"}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "version": "1.0.0",
    }
