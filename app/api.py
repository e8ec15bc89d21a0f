import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from dotenv import load_dotenv

from app.auth_utils import get_current_user
from app.layout import error_page, status_for
from app.routes import admin, auth, dashboard, public
from app.routes import my_alerts, premium, wishlist
from core.database import init_db
from core.errors import BookDockerError

# Ensure .env values are loaded even if uvicorn is launched without `dotenv run`.
# Use override=True so editing `.env` (and restarting uvicorn) reliably takes effect even if
# older values exist in the environment from a previous shell/session.
load_dotenv(override=True)

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(lifespan=lifespan)


app.include_router(public.router)
app.include_router(auth.router)
app.include_router(dashboard.router)
app.include_router(my_alerts.router)
app.include_router(wishlist.router)
app.include_router(premium.router)
app.include_router(admin.router)


@app.exception_handler(BookDockerError)
async def bookdocker_error_handler(request: Request, exc: BookDockerError):
    status = status_for(exc)
    if status >= 500:
        log.error("Request failed", extra={"path": request.url.path, "error": str(exc)})
    user = None
    try:
        user, _ = get_current_user(request)
    except Exception:
        # Still render the error page when the session store is the thing failing.
        log.warning("Could not resolve user for error page", exc_info=True)
    return error_page(exc, user=user)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
    response.headers.setdefault(
        "Content-Security-Policy",
        "default-src 'self'; img-src 'self' data: https:; media-src 'self' https:; style-src 'self' 'unsafe-inline'; "
        "script-src 'self' 'unsafe-inline'; font-src 'self' data:; connect-src 'self';",
    )
    return response
