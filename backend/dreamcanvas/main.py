"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dreamcanvas.core.config import get_settings
from dreamcanvas.core.errors import GenerationError
from dreamcanvas.core.logging import register_secret, setup_logging

# Setup logging
logger = setup_logging("main")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize services at startup, clean up at shutdown."""
    settings = get_settings()
    client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    try:
        from dreamcanvas.services.admission import AdmissionController
        from dreamcanvas.services.generation import GenerationService
        from dreamcanvas.services.providers.registry import build_provider

        config = settings.provider_config()
        register_secret(config.credential)
        provider = build_provider(config, client)
        if not provider.has_credential:
            logger.warning(
                "No credential configured for provider=%s; generation will fail with 401",
                config.name.value,
            )

        app.state.generation_service = GenerationService(
            provider=provider,
            admission=AdmissionController(daily_quota=settings.daily_quota),
            donation_url=settings.donation_url,
        )
        logger.info(
            "DreamCanvas API starting (provider=%s)",
            config.name.value,
            extra={"provider": config.name.value},
        )
    except Exception as exc:
        logger.error(
            "Service initialization failed, running in degraded mode",
            exc_info=True,
            extra={"error_type": type(exc).__name__},
        )
        # Continue without services; generation endpoints return 503 until fixed

    yield
    await client.aclose()


# Create FastAPI app
app = FastAPI(
    title="DreamCanvas API",
    description="Text-to-image proxy over several third-party providers",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(GenerationError)
async def generation_error_handler(_request: Request, exc: GenerationError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Generation failed: %s", exc.message, extra={"status_code": exc.status_code})
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = ", ".join(".".join(str(p) for p in err.get("loc", ())) for err in exc.errors())
    return JSONResponse(status_code=400, content={"error": f"Invalid request: {fields}"})


# Register routers
from dreamcanvas.api.generate import router as generate_router  # noqa: E402

app.include_router(generate_router)


@app.get("/health")
async def health_check(request: Request) -> dict:
    """Health check endpoint.

    Reports initialization status of the generation service.
    Always returns HTTP 200; check `services.generation` for actual status.
    """
    svc = getattr(request.app.state, "generation_service", None)

    logger.info("Health check requested")
    return {
        "status": "ok",
        "version": app.version,
        "provider": get_settings().image_provider.value,
        "time": datetime.now(timezone.utc).isoformat(),
        "services": {
            "generation": "ok" if svc is not None else "unavailable",
        },
    }
