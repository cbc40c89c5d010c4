import asyncio
import logging

from fastapi import APIRouter, HTTPException

from backend import config
from backend.jobs import job_manager
from backend.models import ConvertRequest, JobResponse
from reliefmesh import ConfigError, DecodeError, Settings
from reliefmesh.export import EXPORT_FORMATS
from reliefmesh.sampler import load_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/convert", tags=["convert"])


def _resolve_settings(request: ConvertRequest) -> Settings:
    settings = Settings.from_dict(request.settings)
    if request.detail_level:
        settings = settings.with_detail_level(request.detail_level)
    if settings.resolution > config.MAX_RESOLUTION:
        raise ConfigError("resolution",
                          f"{settings.resolution} exceeds the server limit "
                          f"{config.MAX_RESOLUTION}; reduce resolution")
    return settings


@router.post("", response_model=JobResponse)
async def convert_image(request: ConvertRequest):
    """Start an image → relief mesh conversion.

    Settings and the image are validated up front so bad input fails with
    422 instead of a failed job. The pipeline then runs in a background
    task; poll ``/status/{job_id}`` for progress and the result URL.
    """
    output_format = (request.output_format or config.EXPORT_FORMAT).lower()
    if output_format not in EXPORT_FORMATS:
        raise HTTPException(status_code=422,
                            detail=f"Unsupported output format '{output_format}'")

    # never let a request name a server-side path
    if not request.image.startswith("data:"):
        raise HTTPException(status_code=422,
                            detail="Image must be sent as a data: URL")

    try:
        settings = _resolve_settings(request)
        # large uploads decode off the event loop
        image = await asyncio.to_thread(load_image, request.image)
    except (ConfigError, DecodeError) as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    job = job_manager.create_job()
    asyncio.create_task(job_manager.run_convert(
        job, image, settings, output_format=output_format))

    return JobResponse(
        job_id=job.id,
        status=job.status.value,
        progress=job.progress,
        message=job.message,
        result=job.result,
        settings=settings.to_dict(),
    )


@router.get("/status/{job_id}", response_model=JobResponse)
async def get_convert_status(job_id: str):
    """Poll the status of a running or completed conversion job."""
    job = job_manager.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")

    return JobResponse(
        job_id=job.id,
        status=job.status.value,
        progress=job.progress,
        message=job.message,
        result=job.result,
    )
