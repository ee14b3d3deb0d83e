# file: NEARBY/main.py

import logging

from fastapi import FastAPI, Depends, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from slowapi.errors import RateLimitExceeded

from NEARBY.core.config import PRESENCE_CLEANUP_INTERVAL_MINUTES
from NEARBY.core.logger import setup_logging
from NEARBY.core.errors import ConfirmationError, StoreError
from NEARBY.core.firebase import call_store, get_firestore
from NEARBY.core.rate_limit import limiter
from NEARBY.core.security import get_current_user
from NEARBY.core.cleanup import cleanup_stale_presence
from NEARBY.core.deps import get_catalog_cache, get_proximity_service, get_reconciler

# ------------------------------
# Routers
# ------------------------------
from NEARBY.ProxyLocation.fine_me import router as proximity_router
from NEARBY.PLACES.routes import router as places_router
from NEARBY.PRESENCE.routes import router as presence_router
from NEARBY.USERS.user_routes import router as user_router

# Logging setup
setup_logging()
logger = logging.getLogger("main")

# App initialization
app = FastAPI(title="Nearby Presence API")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # tighten in prod if needed
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Rate limiter
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Too many requests. Please slow down.",
            "limit": str(exc.detail),
        },
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error("❌ Store unavailable on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Presence service temporarily unavailable. Please retry."},
    )


@app.exception_handler(ConfirmationError)
async def confirmation_error_handler(request: Request, exc: ConfirmationError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Protected routers (require JWT Bearer token)
app.include_router(proximity_router, dependencies=[Depends(get_current_user)])
app.include_router(places_router, dependencies=[Depends(get_current_user)])
app.include_router(presence_router, dependencies=[Depends(get_current_user)])
app.include_router(user_router, dependencies=[Depends(get_current_user)])


# Ping endpoint
@app.get("/ping")
@limiter.limit("5/minute")
async def ping(request: Request):
    return {"message": "pong"}


@app.get("/firebase/health")
async def firebase_health():
    try:
        db = get_firestore()
        await call_store("health.places", lambda: list(db.collection("places").limit(1).stream()))
        return {"ok": True, "project": db.project}
    except StoreError:
        raise
    except Exception as e:
        logger.exception("❌ Firebase health check failed: %s", e)
        raise HTTPException(status_code=503, detail="Firebase is not configured")


# Startup scheduled job
scheduler = AsyncIOScheduler()


@app.on_event("startup")
async def startup_event():
    cache = get_catalog_cache()
    cache.start()

    scheduler.add_job(
        cleanup_stale_presence,
        "interval",
        minutes=PRESENCE_CLEANUP_INTERVAL_MINUTES,
        args=[cache, get_reconciler()],
        id="presence_cleanup",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        "[SCHEDULER] Presence cleanup every %d minutes.", PRESENCE_CLEANUP_INTERVAL_MINUTES
    )


@app.on_event("shutdown")
async def shutdown_event():
    if scheduler.running:
        scheduler.shutdown(wait=False)
    get_proximity_service().close_all()
    get_catalog_cache().stop()
    logger.info("Shutdown complete")
