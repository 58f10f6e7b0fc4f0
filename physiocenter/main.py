from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
import asyncio
import time
import logging

from .api.v1 import admin, auth, contact, exercises, kines, patients, rendezvous, resources, treatment_plans
from .core.config import settings
from .core.database import init_db
from .core.errors import register_exception_handlers
from .services.rendezvous_service import auto_cancel_loop

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    db_url = settings.get_database_url
    backend = db_url.split(":", 1)[0].split("+", 1)[0]
    logger.info(f"Starting {settings.APP_NAME} {settings.VERSION} on {backend}")

    try:
        init_db()
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        raise

    auto_cancel = None
    if not settings.TESTING:
        auto_cancel = asyncio.create_task(auto_cancel_loop())
        logger.info(f"Auto-cancel of pending appointments every {settings.RDV_AUTO_CANCEL_INTERVAL_SECONDS}s")

    yield

    if auto_cancel:
        auto_cancel.cancel()
    logger.info(f"Shutting down {settings.APP_NAME}...")

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Physiotherapy clinic: exercise follow-up, treatment plans, appointments and accounts",
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# The test client's host is not a real one
if not settings.TESTING:
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=["localhost", "127.0.0.1", "*.localhost", "testserver"]
    )

@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - started

    response.headers["X-Process-Time"] = f"{elapsed:.4f}"
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed:.4f}s)")
    return response

register_exception_handlers(app)

ROUTERS = (auth, exercises, treatment_plans, patients, rendezvous, resources, kines, admin, contact)
for module in ROUTERS:
    app.include_router(module.router, prefix=settings.API_PREFIX)

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "version": settings.VERSION
    }

@app.get("/")
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME} API",
        "version": settings.VERSION,
        "docs": "/docs",
        "health": "/health"
    }

@app.get(f"{settings.API_PREFIX}/info")
async def api_info():
    """List the API entry points."""
    endpoints = {module.router.prefix.strip("/"): f"{settings.API_PREFIX}{module.router.prefix}" for module in ROUTERS}
    endpoints["openapi"] = f"{settings.API_PREFIX}/openapi.json"
    return {
        "name": settings.APP_NAME,
        "version": settings.VERSION,
        "endpoints": endpoints
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "physiocenter.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info"
    )
