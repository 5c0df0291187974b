import logging
import os
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from shotcoach.api.coaching import router as coaching_router
from shotcoach.core.config import settings

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Shot Coach API", version="0.1.0")

# Configure CORS origins - localhost plus any production origins from the environment
cors_origins = ["http://localhost:8081", "http://localhost:19006"]
allowed_origins_env = os.getenv("ALLOWED_ORIGINS", "")
if allowed_origins_env:
    cors_origins.extend([origin.strip() for origin in allowed_origins_env.split(",")])

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(coaching_router)


@app.on_event("startup")
async def startup_event():
    """Log configuration on startup."""
    logger.info("=" * 60)
    logger.info("Starting Shot Coach API...")
    logger.info(f"OpenAI API key configured: {'Yes' if settings.openai_api_key else 'No'}")
    logger.info(f"Vision model: {settings.openai_model}")
    logger.info(f"Perfect shot score: {settings.perfect_shot_score}")
    logger.info("=" * 60)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/ready")
async def ready():
    return {"status": "ready"}
