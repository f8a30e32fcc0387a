"""API routes for upload and conversion."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import FileResponse, JSONResponse

from app.config import ConverterSettings
from app.conversion.errors import ConversionError
from app.conversion.models import SOURCE_DECODERS, ConversionRequest, TargetFormat
from app.conversion.service import ConversionOrchestrator

logger = logging.getLogger("converter.api")
router = APIRouter(prefix="/api", tags=["converter"])
artifacts_router = APIRouter(tags=["artifacts"])


def get_orchestrator(request: Request) -> ConversionOrchestrator:
    return request.app.state.orchestrator


def get_settings(request: Request) -> ConverterSettings:
    return request.app.state.settings


def _error_response(error: ConversionError) -> JSONResponse:
    # Server-side kinds carry the generic message only; detail stays in the log
    return JSONResponse(
        status_code=error.status_code,
        content={"error": error.kind, "detail": error.public_message},
    )


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/limits")
def get_limits(settings: ConverterSettings = Depends(get_settings)):
    """Return upload limits for the client."""
    return {
        "max_image_size_mb": settings.max_upload_mb,
        "max_image_size_bytes": settings.max_upload_bytes,
    }


@router.get("/formats")
def get_formats(settings: ConverterSettings = Depends(get_settings)):
    return {
        "source": sorted(t for t in settings.accepted_source_types if t in SOURCE_DECODERS),
        "output": [fmt.value for fmt in TargetFormat],
    }


async def convert_image(
    image: Optional[UploadFile] = File(None),
    format: Optional[str] = Form(None),
    orchestrator: ConversionOrchestrator = Depends(get_orchestrator),
):
    """Convert one uploaded image; responds with the URL of the converted file."""
    request = ConversionRequest(
        source=image.file if image is not None else None,
        content_type=image.content_type if image is not None else None,
        target_format=format,
        filename=image.filename if image is not None else None,
        size=image.size if image is not None else None,
    )
    result = await orchestrator.submit(request)
    if not result.ok:
        return _error_response(result.error)
    return {"url": result.artifact.url}


router.add_api_route("/convert", convert_image, methods=["POST"])
# Unprefixed alias kept for clients posting to /convert
artifacts_router.add_api_route("/convert", convert_image, methods=["POST"], include_in_schema=False)


@artifacts_router.get("/converted/{name}")
def download_artifact(name: str, orchestrator: ConversionOrchestrator = Depends(get_orchestrator)):
    """Serve a previously published artifact."""
    path = orchestrator.publisher.resolve(name)
    if path is None:
        raise HTTPException(404, "File not found")
    fmt = TargetFormat(path.suffix.lstrip(".").lower())
    return FileResponse(path, media_type=fmt.media_type, filename=name)
