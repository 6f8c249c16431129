"""Generation API router."""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse

from dreamcanvas.core.config import get_settings
from dreamcanvas.models.generation import ErrorResponse, GenerationRequest, GenerationResult
from dreamcanvas.services.generation import GenerationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["generation"])

_ERROR_RESPONSES = {
    code: {"model": ErrorResponse} for code in (400, 401, 429, 502, 503, 504)
}


def get_generation_service(request: Request) -> GenerationService:
    """FastAPI dependency: retrieve GenerationService from app.state.

    Returns HTTP 503 if the service was not initialized at startup.
    """
    svc: GenerationService | None = getattr(request.app.state, "generation_service", None)
    if svc is None:
        raise HTTPException(
            status_code=503,
            detail="Generation service unavailable. Service not initialized.",
        )
    return svc


def get_caller_key(request: Request) -> str:
    """Quota key: the operator-defined identity header, else the client address."""
    header = get_settings().caller_id_header
    caller = request.headers.get(header, "").strip() if header else ""
    if caller:
        return caller
    return request.client.host if request.client else "unknown"


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    provider = get_settings().image_provider.value
    return f"DreamCanvas API is up (provider={provider}). Try GET /health or POST /ai/generate."


@router.post(
    "/ai/generate",
    response_model=GenerationResult,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
)
async def generate(
    body: GenerationRequest,
    caller_key: str = Depends(get_caller_key),
    service: GenerationService = Depends(get_generation_service),
) -> GenerationResult:
    """Generate one image and return its URL or data URL.

    Errors are raised as GenerationError subclasses and rendered by the
    exception handlers registered in dreamcanvas.main.
    """
    return await service.handle(body, caller_key)


@router.get("/debug")
async def debug() -> dict:
    """Report provider configuration without exposing the credential."""
    config = get_settings().provider_config()
    return {
        "ok": True,
        "provider": config.name.value,
        "hasKey": bool(config.credential),
        "model": config.model,
        "time": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/selftest")
async def selftest(service: GenerationService = Depends(get_generation_service)) -> dict:
    """Hit the configured provider once with a fixed prompt, outside admission control."""
    result = await service.selftest()
    logger.info("selftest: ok=%s status=%s", result["ok"], result["status"])
    return result
