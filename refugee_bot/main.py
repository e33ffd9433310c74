"""FastAPI-Einstiegspunkt für den Refugee Support WhatsApp Bot."""
import logging
import time
import uuid

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from refugee_bot.core.composer import ResponseComposer
from refugee_bot.core.config import settings
from refugee_bot.core.db_sqla import SessionLocal, init_db
from refugee_bot.core.errors import AuthenticationFailure, ValidationFailure
from refugee_bot.core.logging_setup import setup_logging
from refugee_bot.core.nlu import build_nlu_client
from refugee_bot.core.pipeline import MessagePipeline
from refugee_bot.core.reference_data import ReferenceDataGateway
from refugee_bot.core.resolver import IntentResolver
from refugee_bot.core.seed import seed_reference_data
from refugee_bot.core.signature import SignatureVerifier

from refugee_bot.routers import admin as admin_router
from refugee_bot.routers import webhook as webhook_router

logger = logging.getLogger(__name__)

# Initialisierung der App
app = FastAPI(
    title="Refugee WhatsApp Bot",
    version=webhook_router.VERSION,
    description="WhatsApp assistant for refugees and displaced people in Mbarara.",
)

# Setup Logging (File + Console)
setup_logging(settings.log_level, settings.log_file)


@app.exception_handler(AuthenticationFailure)
async def authentication_failure_handler(request: Request, exc: AuthenticationFailure):
    return JSONResponse(status_code=403, content={"error": {"message": exc.message, "code": exc.code}})


@app.exception_handler(ValidationFailure)
async def validation_failure_handler(request: Request, exc: ValidationFailure):
    logger.warning(f"Webhook validation failed on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=400, content={"error": {"message": exc.message, "code": exc.code}})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Loggt jeden Request mit Request-ID, Methode, Pfad, Status und Dauer."""
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    request.state.request_id = request_id
    start = time.perf_counter()
    logger.debug(f"[{request_id}] Incoming request {request.method} {request.url.path}")

    try:
        response = await call_next(request)
    except Exception:
        duration_ms = (time.perf_counter() - start) * 1000
        logger.error(f"[{request_id}] {request.method} {request.url.path} -> 500 ({duration_ms:.1f}ms)")
        raise

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = request_id
    logger.info(
        f"[{request_id}] {request.method} {request.url.path} -> {response.status_code} ({duration_ms:.1f}ms)"
    )
    return response


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # Unbekannte Routen im selben JSON-Format wie die übrigen Fehler
    if exc.status_code == 404:
        return JSONResponse(status_code=404, content={"error": {"message": "Endpoint not found", "code": "NOT_FOUND"}})
    return await http_exception_handler(request, exc)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    request_id = getattr(request.state, "request_id", "-")
    logger.exception(f"[{request_id}] Unexpected error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500, content={"error": {"message": "Internal Server Error", "code": "INTERNAL_ERROR"}}
    )


@app.on_event("startup")
def startup_event() -> None:
    """Initialisiert alle Services beim Start der Anwendung.

    - Prüft die Konfiguration und loggt Probleme.
    - Initialisiert die Datenbank (und optional Demo-Daten).
    - Baut Signaturprüfung, Dialogflow-Client, Resolver und Pipeline.
    """
    for problem in settings.validate_for_startup():
        logger.error(f"Configuration problem: {problem}")
    logger.info(f"Configuration summary: {settings.summary()}")

    # DB Initialisieren
    init_db()
    if settings.seed_demo_data:
        db = SessionLocal()
        try:
            seed_reference_data(db)
        finally:
            db.close()

    # Core Services initialisieren und im App State speichern
    app.state.settings = settings
    app.state.verifier = SignatureVerifier(settings.twilio_auth_token, enforce=settings.is_production)
    app.state.nlu_client = build_nlu_client(settings)
    app.state.resolver = IntentResolver(app.state.nlu_client)
    app.state.gateway = ReferenceDataGateway(SessionLocal)
    app.state.pipeline = MessagePipeline(app.state.resolver, ResponseComposer(app.state.gateway))

    if not settings.is_production:
        logger.warning("Running outside production: Twilio signature verification is DISABLED.")
    logger.info("🚀 Refugee WhatsApp Bot ist initialisiert.")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    if getattr(app.state, "nlu_client", None) is not None:
        await app.state.nlu_client.aclose()


@app.get("/", include_in_schema=False)
async def root():
    return {
        "message": "Refugee WhatsApp Bot API",
        "version": webhook_router.VERSION,
        "endpoints": {
            "webhook": "/webhook/twilio/whatsapp",
            "health": "/webhook/health",
        },
    }


@app.get("/health")
async def health(request: Request):
    return await webhook_router.health(request)


# Router registrieren
app.include_router(webhook_router.router)
app.include_router(admin_router.router)


def run() -> None:
    """Startet den Server auf SERVICE_PORT (Entry-Point ``refugee-bot``)."""
    uvicorn.run(app, host="0.0.0.0", port=settings.service_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
