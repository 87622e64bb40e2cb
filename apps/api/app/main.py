
import apps.api.app.models.user
import apps.api.app.models.guard_settings
import apps.api.app.models.guard_state
import apps.api.app.models.guard_event

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from apps.api.app.api.guard import router as guard_router
from apps.api.app.core.config import settings
from apps.api.app.core.logging import configure_logging
from apps.api.app.db.session import engine, Base
from apps.api.app.schemas.guard import ErrorOut, StateOut, TradingOffOut
from apps.api.app.services.errors import (
    GuardValidationError,
    PersistenceError,
    TradingOffError,
    UnknownUserError,
)

configure_logging(settings.LOG_LEVEL)

app = FastAPI(title="tradeguard API")

origins = [o.strip() for o in settings.CORS_ALLOW_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

Base.metadata.create_all(bind=engine)

app.include_router(guard_router)


@app.exception_handler(GuardValidationError)
def on_validation_error(request: Request, exc: GuardValidationError):
    return JSONResponse(status_code=400, content=ErrorOut(error=str(exc)).model_dump())


@app.exception_handler(RequestValidationError)
def on_request_validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content=ErrorOut(error="invalid request body").model_dump())


@app.exception_handler(TradingOffError)
def on_trading_off(request: Request, exc: TradingOffError):
    body = TradingOffOut(error="TRADING_OFF", state=StateOut.model_validate(exc.state))
    return JSONResponse(status_code=403, content=body.model_dump())


@app.exception_handler(UnknownUserError)
def on_unknown_user(request: Request, exc: UnknownUserError):
    return JSONResponse(status_code=404, content=ErrorOut(error=str(exc)).model_dump())


@app.exception_handler(PersistenceError)
def on_persistence_error(request: Request, exc: PersistenceError):
    # already logged with traceback by the store
    return JSONResponse(status_code=500, content=ErrorOut(error="INTERNAL").model_dump())


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/")
def root():
    return {"app": "tradeguard", "docs": "/docs"}
