# crux/main.py
import time
import logging
import uuid
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from crux.settings import get_settings
from crux.errors import register_exception_handlers
from crux.routers.auth import router as auth_router
from crux.routers.schedule import router as schedule_router
from crux.routers.executions import router as executions_router
from crux.db import SessionLocal  # for healthz DB check

settings = get_settings()
logging.basicConfig(level=settings.LOG_LEVEL.upper())
log = logging.getLogger("uvicorn")

app = FastAPI(
    title="Crux Planner API",
    openapi_tags=[
        {"name": "auth", "description": "Registration & login"},
        {"name": "schedule", "description": "One-off sessions, recurring series and the calendar"},
        {"name": "executions", "description": "Workout execution logs and their steps"},
    ],
)

# CORS (relax for local dev; tighten origins in prod via env)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS.split(","),
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

@app.middleware("http")
async def add_request_id_and_log(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = req_id
    log.info("rid=%s %s %s -> %s in %.1fms",
             req_id, request.method, request.url.path, response.status_code, duration_ms)
    return response

@app.get("/")
def root():
    return {"ok": True, "name": "Crux Planner API"}

@app.get("/ping")
def ping():
    return {"pong": True}

@app.get("/healthz")
def healthz():
    # Quick DB sanity check
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
        return {"status": "ok"}
    except Exception as e:
        log.warning("healthz db check failed: %s", e)
        return {"status": "degraded", "error": str(e)}

@app.get("/version")
def version():
    return {"version": settings.API_VERSION}

# Routers
app.include_router(auth_router)
app.include_router(schedule_router)
app.include_router(executions_router)
