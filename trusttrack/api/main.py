"""
Relay HTTP API - stage submission, product history and health endpoints.
"""

from fastapi import FastAPI, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool
from typing import List, Optional

from .schemas import (
    SubmitStageResponse,
    StageResponse,
    StagesResponse,
    HealthResponse,
    ErrorResponse,
    RootResponse,
)
from ..core import codec, config
from ..core.config import VERSION, debug_enabled
from ..core.errors import RelayError, ValidationError
from ..core.schema import MediaBlob, SubmissionRequest
from ..core.service import RelayService
from ..util.logging import logger

# HTTP status per error category
STATUS_BY_CATEGORY = {
    "validation": 400,
    "estimation": 422,
    "revert": 422,
    "insufficient_funds": 503,
    "connectivity": 503,
    "confirmation_timeout": 504,
    "broadcast": 502,
    "read": 502,
}

ERROR_RESPONSES = {status: {"model": ErrorResponse} for status in sorted(set(STATUS_BY_CATEGORY.values()))}

app = FastAPI(
    title="TrustTrack Relay API",
    version=VERSION,
    description="Records product provenance stages on chain and replays their history",
    docs_url="/docs" if debug_enabled() else None,
    redoc_url="/redoc" if debug_enabled() else None
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization"],
)

_service: Optional[RelayService] = None


def get_service() -> RelayService:
    """Process-wide relay service, built from configuration on first use."""
    global _service
    if _service is None:
        _service = RelayService.from_config()
    return _service


def set_service(service: Optional[RelayService]):
    global _service
    _service = service


async def read_upload(upload: UploadFile, max_bytes: int) -> MediaBlob:
    """Buffer one upload, never holding more than max_bytes + 1 bytes of it."""
    if upload.size is not None and upload.size > max_bytes:
        _raise_too_large(upload.filename, upload.size, max_bytes)

    data = await upload.read(max_bytes + 1)
    if len(data) > max_bytes:
        _raise_too_large(upload.filename, len(data), max_bytes)

    return MediaBlob(
        filename=upload.filename or "",
        content_type=upload.content_type or "",
        data=data
    )


def _raise_too_large(filename: Optional[str], size: int, max_bytes: int):
    limit_mb = max_bytes // (1024 * 1024)
    raise ValidationError(f"File too large. Maximum size is {limit_mb}MB.",
                          details=f"{filename}: {size} bytes")


@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError):
    status_code = STATUS_BY_CATEGORY.get(exc.category, 500)
    if status_code >= 500:
        logger.error(f"Request {request.url.path} failed: {exc.category}: {exc.details}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.post("/api/submit-stage", response_model=SubmitStageResponse, responses=ERROR_RESPONSES)
async def submit_stage(
    productId: Optional[str] = Form(None),
    comments: Optional[str] = Form(None),
    dynamicFields: Optional[str] = Form(None),
    media: Optional[List[UploadFile]] = File(None),
    service: RelayService = Depends(get_service),
):
    """Record one stage for a product on chain."""
    uploads = media or []
    if len(uploads) > config.MEDIA_MAX_FILES:
        raise ValidationError(f"Too many media files. Maximum is {config.MEDIA_MAX_FILES}.")

    blobs = [await read_upload(upload, config.MEDIA_MAX_BYTES) for upload in uploads]

    request = SubmissionRequest(
        product_id=productId or "",
        fields=codec.parse_dynamic_fields(dynamicFields or "[]"),
        comments=comments or "",
        media=blobs
    )

    # Submission blocks on RPC calls and the account writer queue
    record = await run_in_threadpool(service.submit_stage, request)

    return SubmitStageResponse(
        transactionHash=record.transaction_hash,
        eventId=record.event_id
    )


@app.get("/api/product/{productId}/stages", response_model=StagesResponse, responses=ERROR_RESPONSES)
def get_product_stages(productId: str, service: RelayService = Depends(get_service)):
    """Stage history for a product, oldest first."""
    history = service.get_history(productId)
    return StagesResponse(
        stages=[StageResponse(**stage.to_dict()) for stage in history.stages]
    )


@app.get("/api/health", response_model=HealthResponse)
def health_check_endpoint(service: RelayService = Depends(get_service)):
    return HealthResponse(**service.health())


@app.get("/", response_model=RootResponse)
def root():
    return RootResponse(
        message="TrustTrack Relay API",
        version=VERSION,
        endpoints=[
            "POST /api/submit-stage",
            "GET /api/product/:productId/stages",
            "GET /api/health"
        ]
    )
