# --- droppers/main.py -------------------------------------------------------
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .database import init_db
from .errors import register_exception_handlers
from .schemas import Envelope, HealthOut
from .settings import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Droppers API", version=__version__)

# CORS so the dashboard frontend can call the API
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.DROPPERS_FRONTEND_ORIGIN, "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)

register_exception_handlers(app)

# Create DB tables on boot (dev convenience)
init_db()

api = APIRouter(prefix=settings.DROPPERS_API_PREFIX)


@api.get("/health", response_model=Envelope[HealthOut])
def health():
    return {
        "success": True,
        "message": "Droppers API is running!",
        "data": {"env": settings.APP_ENV, "version": __version__, "timestamp": datetime.now(timezone.utc)},
    }


# Routers
from .routes.auth_routes import router as auth_router
from .routes.vendor_routes import router as vendor_router
from .routes.delivery_routes import router as delivery_router
from .routes.order_routes import router as order_router
from .realtime import router as realtime_router

api.include_router(auth_router)
api.include_router(vendor_router)
api.include_router(delivery_router)
# generic /orders/{order_id} last so it doesn't shadow the actor routes
api.include_router(order_router)
api.include_router(realtime_router)

app.include_router(api)

logger.info("Droppers API ready (env=%s, prefix=%s)", settings.APP_ENV, settings.DROPPERS_API_PREFIX)
# ---------------------------------------------------------------------------
