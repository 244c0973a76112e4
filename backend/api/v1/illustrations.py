"""Illustration API endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from core.illustration.image_payload import to_png_bytes
from core.illustration.orchestrator import IllustrationOrchestrator
from core.persistence import DailyQuotaCounter
from core.schemas import illustration_filename
from core.utils.clock import now_ms
from shared.errors import ValidationError
from backend.dependencies import get_orchestrator, get_quota
from .schemas import DownloadRequest, IllustrationRequest, IllustrationResponse, QuotaResponse

router = APIRouter(prefix="/illustrations", tags=["illustrations"])


@router.post("", response_model=IllustrationResponse)
def create_illustration(
    request: IllustrationRequest,
    orchestrator: IllustrationOrchestrator = Depends(get_orchestrator),
):
    """Generate an illustration for an article body."""
    illustration = orchestrator.generate_illustration(request.content, request.language, request.url)
    return IllustrationResponse(
        image=illustration.image_data_uri,
        prompt=illustration.prompt_text,
        provider=illustration.provider_label,
    )


@router.get("/quota", response_model=QuotaResponse)
def get_quota_status(quota: DailyQuotaCounter = Depends(get_quota)):
    """Remaining illustrations for today and the countdown to the next reset."""
    remaining = quota.remaining()
    return QuotaResponse(
        remaining=remaining,
        limit=quota.daily_limit,
        can_generate=remaining > 0,
        seconds_until_reset=quota.time_until_reset(),
    )


@router.post("/download")
def download_illustration(request: DownloadRequest):
    """Return a generated illustration as a PNG attachment."""
    try:
        png = to_png_bytes(request.image)
    except ValueError as e:
        raise ValidationError("Invalid image data", details=str(e)) from e

    filename = illustration_filename(request.timestamp or now_ms())
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
