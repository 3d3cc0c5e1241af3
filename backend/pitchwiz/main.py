from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pitchwiz.api import intervals, notes, websocket
from pitchwiz.core.config import settings
from pitchwiz.core.logging import setup_logging

# Setup logging before app startup
setup_logging(settings.LOG_LEVEL)

from contextlib import asynccontextmanager
import asyncio
import logging
import numpy as np
from pitchwiz.services.pipeline import PitchPipeline

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: compile the autocorrelation kernel before the first client frame
    try:
        config = settings.pitch_config()
        logger.info("Warming up pitch estimator (Numba JIT compilation)...")
        pipeline = PitchPipeline(config)
        t = np.arange(config.frame_size) / config.sample_rate
        await asyncio.to_thread(pipeline.process, (0.5 * np.sin(2 * np.pi * 220.0 * t)).astype(np.float32))
        logger.info("Pitch estimator ready")
    except Exception as e:
        logger.error(f"Pitch estimator warmup failed: {e}")

    yield


app = FastAPI(title="PitchWiz Core", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(websocket.router)
app.include_router(notes.router)
app.include_router(intervals.router)

@app.get("/")
def health_check():
    return {"status": "PitchWiz backend is running"}
