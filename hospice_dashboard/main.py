"""
FastAPI app

- CORS configured for the dashboard frontend
- Single router for all endpoints
- Basic health check
"""
import logging
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file before config is imported
project_root = Path(__file__).parent.parent
load_dotenv(dotenv_path=project_root / '.env')

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hospice_dashboard.api import router
from hospice_dashboard.core.config import CORS_ORIGINS
from hospice_dashboard.api.middleware import TimingMiddleware

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title="Hospice Case Dashboard")

# Add timing middleware for performance monitoring
app.add_middleware(TimingMiddleware)

# CORS middleware configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,  # Uses CORS_ORIGINS from config (env var)
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api/v1")


@app.get("/")
async def root():
    """
    Basic health check
    """
    return {"status": "ok"}
