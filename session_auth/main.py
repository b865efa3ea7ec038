import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from session_auth.config import settings
from session_auth.database import init_db
from session_auth.routers import auth, health, sessions
from session_auth.services.credentials import CredentialConfigError
from session_auth.services.session_store import SessionStoreError
from session_auth.services.users import user_store

LOGGER = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


configure_logging()

app = FastAPI(title="Session Auth")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix="/api")
app.include_router(auth.router, prefix="/api")
app.include_router(sessions.router, prefix="/api")


@app.exception_handler(SessionStoreError)
def handle_store_error(request: Request, exc: SessionStoreError) -> JSONResponse:
    LOGGER.error("Session store failure on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Session store unavailable"},
    )


@app.exception_handler(CredentialConfigError)
def handle_credential_config_error(
    request: Request, exc: CredentialConfigError
) -> JSONResponse:
    LOGGER.error("Credential configuration error: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Credential signing is not configured"},
    )


@app.on_event("startup")
def startup() -> None:
    init_db()
    if settings.seed_email:
        try:
            user_store.ensure_user(settings.seed_email)
        except ValueError:
            LOGGER.warning("Ignoring invalid SEED_EMAIL %r", settings.seed_email)


@app.get("/")
def root():
    return {"status": "Backend running"}
