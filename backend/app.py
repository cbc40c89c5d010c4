import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from backend import config
from backend.routers import convert, models

logging.basicConfig(level=logging.INFO,
                    format='%(asctime)s - %(levelname)s - %(message)s')

app = FastAPI(
    title="ReliefMesh API",
    description="Backend API for converting images into relief meshes",
    version="0.1.0",
)

# ---------------------------------------------------------------------------
# CORS -- allow the front-end dev server
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(convert.router)
app.include_router(models.router)

# ---------------------------------------------------------------------------
# Static files -- serve generated meshes
# ---------------------------------------------------------------------------
config.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/output", StaticFiles(directory=str(config.OUTPUT_DIR)), name="output")


@app.get("/")
async def root():
    return {"status": "ok", "service": "ReliefMesh API"}
