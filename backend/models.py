from pydantic import BaseModel
from typing import Optional


class ConvertRequest(BaseModel):
    image: str                          # data URL (data:image/png;base64,...)
    settings: dict = {}                 # camelCase or snake_case keys
    detail_level: Optional[str] = None  # low / med / high / ultra / extreme
    output_format: Optional[str] = None  # stl, stl_ascii, obj, ply, glb


class JobResponse(BaseModel):
    job_id: str
    status: str
    progress: float
    message: str
    result: Optional[dict] = None
    settings: Optional[dict] = None


class ModelInfo(BaseModel):
    name: str
    filename: str
    format: str
    size_kb: float
