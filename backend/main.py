"""
Mock Interview Realtime Server

Backend for realtime voice mock interviews:
- Interview plans (candidate, company, role, interviewer, questions)
- Ephemeral credentials + interview directive for the realtime client
- Tool-response recording (answers, phase changes, interview end)

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables from .env file
_project_root = Path(__file__).parent
env_path = _project_root / ".env"
if env_path.exists():
    load_dotenv(env_path)

from app.api import get_store, router  # noqa: E402
from app.interview.store import InterviewStore  # noqa: E402

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# ============================================================================
# LIFESPAN (STARTUP/SHUTDOWN)
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log configuration at startup and shutdown."""
    logger.info("🚀 Starting Mock Interview Realtime Server...")
    logger.info(f"📍 Environment: {os.environ.get('ENVIRONMENT', 'development')}")

    if os.environ.get("OPENAI_API_KEY"):
        logger.info("✅ OPENAI_API_KEY configured")
    else:
        logger.error("❌ OPENAI_API_KEY not set! Realtime sessions cannot be issued.")

    logger.info("🎉 Server ready!")

    yield

    logger.info("🛑 Shutting down server...")
    store = app.dependency_overrides.get(get_store, get_store)()
    logger.info(f"✅ Server shutdown complete ({len(store)} interviews in memory)")


# ============================================================================
# FASTAPI APP
# ============================================================================

app = FastAPI(
    title="Mock Interview Realtime Server",
    description="Session issuing and tool-response recording for realtime voice interviews",
    version="1.0.0",
    lifespan=lifespan
)

_cors_origins = [o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/")
async def root():
    return {
        "service": "Mock Interview Realtime Server",
        "status": "running",
        "version": "1.0.0",
    }


@app.get("/health")
async def health(store: InterviewStore = Depends(get_store)):
    return {
        "status": "healthy",
        "interviews": len(store),
        "components": {
            "token_issuer": bool(os.environ.get("OPENAI_API_KEY")),
        }
    }


# ============================================================================
# MAIN
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
