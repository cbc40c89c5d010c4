import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    queued = "queued"
    running = "running"
    completed = "completed"
    failed = "failed"


@dataclass
class Job:
    id: str
    status: JobStatus = JobStatus.queued
    progress: float = 0.0
    message: str = "Queued"
    result: Optional[dict] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def _sync_convert(image, settings, output_filename: str,
                  output_format: str = "stl",
                  progress_callback=None) -> dict:
    """Run the relief pipeline and export the result in a worker thread.

    The pipeline itself is synchronous CPU work with no cancellation
    point; running it here keeps the event loop responsive.
    """
    from reliefmesh import generate_mesh
    from reliefmesh.export import export_mesh, mesh_summary
    from backend import config as _cfg

    mesh = generate_mesh(image, settings, progress_callback=progress_callback)
    path = export_mesh(mesh, _cfg.OUTPUT_DIR / output_filename,
                       file_type=output_format)
    summary = mesh_summary(mesh)
    return {
        "format": output_format,
        "path": str(path),
        "model_url": f"/output/{output_filename}",
        "vertices": summary["vertices"],
        "faces": summary["faces"],
        "watertight": summary["watertight"],
        "size_mb": round(path.stat().st_size / 1024 / 1024, 3),
    }


class JobManager:
    def __init__(self) -> None:
        self.jobs: dict[str, Job] = {}

    def create_job(self) -> Job:
        job = Job(id=str(uuid.uuid4()))
        self.jobs[job.id] = job
        return job

    def get_job(self, job_id: str) -> Optional[Job]:
        return self.jobs.get(job_id)

    async def run_convert(self, job: Job, image, settings,
                          output_format: str = "stl") -> None:
        """Execute the conversion pipeline, updating *job* with progress."""
        try:
            job.status = JobStatus.running
            job.progress = 1.0
            job.message = "Sampling image..."

            ext = "stl" if output_format == "stl_ascii" else output_format
            output_filename = f"relief-{job.id[:8]}.{ext}"

            def _update_progress(pct: float, msg: str) -> None:
                job.progress = pct
                job.message = msg

            result = await asyncio.to_thread(
                _sync_convert,
                image,
                settings,
                output_filename,
                output_format=output_format,
                progress_callback=_update_progress,
            )

            job.progress = 100.0
            job.message = "Conversion complete"
            job.status = JobStatus.completed
            job.result = result

        except Exception as exc:
            logger.exception("Conversion failed for job %s", job.id)
            job.status = JobStatus.failed
            job.progress = 0.0
            job.message = f"Conversion failed: {exc}"


# Singleton instance used across the application
job_manager = JobManager()
