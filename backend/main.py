import logging
import logging.config
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

# ------------------------------------------------------------
# 1. CONFIG & LOGGING
# ------------------------------------------------------------
from app.core.config import settings

LOG_LEVEL = "INFO" if settings.ENVIRONMENT == "production" else "DEBUG"

logging_config = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "loggers": {
        "uvicorn": {"handlers": ["console"], "level": LOG_LEVEL},
        "uvicorn.error": {"handlers": ["console"], "level": LOG_LEVEL},
        "uvicorn.access": {"handlers": ["console"], "level": LOG_LEVEL},
        "khoi": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}

logging.config.dictConfig(logging_config)
logger = logging.getLogger("khoi")


# ------------------------------------------------------------
# 2. FASTAPI APP
# ------------------------------------------------------------
app = FastAPI(
    title="KHOI Push API",
    description="Push notification backend for the KHOI app: inbox, device tokens, test pushes.",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)


# ------------------------------------------------------------
# 3. ROUTERS (API ROUTES)
# ------------------------------------------------------------
from app.routers import notifications_router

app.include_router(notifications_router.router, prefix="/api", tags=["Notifications"])


# ------------------------------------------------------------
# 4. SPECIFIC ROUTES
# ------------------------------------------------------------
@app.get("/health", tags=["System"])
async def health_check():
    from app.core.firebase import get_db
    from app.utils.firebase import firebase_run

    try:
        test_doc = get_db().collection("system").document("healthcheck")
        await firebase_run(test_doc.set, {"ping": datetime.now(timezone.utc)}, merge=True)
        return {"status": "healthy", "db": "connected"}
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "unhealthy", "error": str(e)})


# ------------------------------------------------------------
# 5. GLOBAL EXCEPTION HANDLER
# ------------------------------------------------------------
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": "Something went wrong. We're on it.",
            "request_id": request.headers.get("X-Request-ID"),
        },
    )


# ------------------------------------------------------------
# 6. STARTUP EVENT
# ------------------------------------------------------------
@app.on_event("startup")
async def startup_event():
    # Firestore trigger watchers run in their own process (watcher.py), not per API worker
    logger.info(f"🚀 KHOI Push API started | Env: {settings.ENVIRONMENT} | Debug: {settings.DEBUG}")


# ------------------------------------------------------------
# 7. REQUEST LOGGING MIDDLEWARE
# ------------------------------------------------------------
@app.middleware("http")
async def log_requests(request: Request, call_next):
    client = request.client.host if request.client else "-"
    logger.info(f"➡️ {client} {request.method} {request.url.path}")
    try:
        response = await call_next(request)
    except Exception as e:
        logger.exception(f"💥 Exception during {request.method} {request.url.path}: {e}")
        raise
    logger.info(f"⬅️ {request.method} {request.url.path} → {response.status_code}")
    return response


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
