# backend/workshop/main.py
import os, json
import logging

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy import text
from sqlalchemy.orm import Session

from .core.config import LOG_LEVEL
from .core.db import get_db
from .core.errors import ShopError
from .core.api import ok, fail, UTF8JSONResponse

from .routers.auth import router as auth_router
from .routers.appointments import router as appointments_router
from .routers.orders import router as orders_router
from .routers.parts import router as parts_router
from .routers.reminders import router as reminders_router
from .routers.reports import router as reports_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

SERVICE_NAME = "Workshop API"

app = FastAPI(title=SERVICE_NAME, default_response_class=UTF8JSONResponse)


# -----------------------------
# Error envelope
# -----------------------------
@app.exception_handler(ShopError)
async def shop_error_to_envelope(request: Request, exc: ShopError):
    if exc.status_code >= 500:
        # internal detail stays in the log
        return fail("Internal error, please retry later.", status_code=exc.status_code)
    meta = {"kind": exc.kind}
    if exc.meta:
        meta.update(exc.meta)
    return fail(exc.message, status_code=exc.status_code, meta=meta)

@app.exception_handler(StarletteHTTPException)
async def http_exception_to_envelope(request: Request, exc: StarletteHTTPException):
    return fail(str(exc.detail) if exc.detail else exc.__class__.__name__,
                status_code=exc.status_code, headers=getattr(exc, "headers", None))

@app.exception_handler(RequestValidationError)
async def validation_exception_to_envelope(request: Request, exc: RequestValidationError):
    return fail("Validation error", status_code=422, meta={"errors": exc.errors()})


# -----------------------------
# CORS (.env)
# -----------------------------
def _parse_origins(env_val: str | None):
    if not env_val or env_val.strip() == "*":
        return ["*"]
    try:
        parsed = json.loads(env_val)
        if isinstance(parsed, list):
            return [str(x) for x in parsed]
    except ValueError:
        pass
    return [s.strip() for s in env_val.split(",") if s.strip()]

ALLOWED_ORIGINS = _parse_origins(os.getenv("CORS_ALLOW_ORIGINS", "*"))
logger.info("CORS allow_origins = %s", ALLOWED_ORIGINS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---- Health ----
@app.get("/health")
def health():
    return ok({"service": SERVICE_NAME})

@app.get("/db-ping")
def db_ping(db: Session = Depends(get_db)):
    val = db.execute(text("SELECT 1")).scalar()
    return ok({"db": "ok", "select1": val})


# =========================
# Routers
# =========================
app.include_router(auth_router)
app.include_router(appointments_router)
app.include_router(orders_router)
app.include_router(parts_router)
app.include_router(reminders_router)
app.include_router(reports_router)
