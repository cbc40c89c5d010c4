import os
import pathlib

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = pathlib.Path(__file__).parent.parent.absolute()
OUTPUT_DIR = pathlib.Path(os.environ.get("RELIEFMESH_OUTPUT_DIR", BASE_DIR / "output"))

# Upper bound on the grid size a single request may ask for
MAX_RESOLUTION = int(os.environ.get("RELIEFMESH_MAX_RESOLUTION", "512"))

# Default export format when a request does not name one
EXPORT_FORMAT = os.environ.get("RELIEFMESH_EXPORT_FORMAT", "stl").strip().lower()

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get(
        "RELIEFMESH_CORS_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173",
    ).split(",")
    if origin.strip()
]
