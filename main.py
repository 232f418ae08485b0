"""
Family Tree Layout Service - FastAPI Entry Point
"""
import logging

from fastapi import FastAPI

from api import tree
from services.export_service import EXPORTS_DIR

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Family Tree Layout",
    description="Generational layout and connector routing for family trees",
    version="1.0.0"
)

app.include_router(tree.router)

# Ensure directories exist
EXPORTS_DIR.mkdir(exist_ok=True)


@app.get("/")
async def root():
    """Describe the service."""
    return {"name": app.title, "version": app.version}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
