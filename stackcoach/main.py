import logging

from fastapi import FastAPI

from stackcoach.api import recommendations
from stackcoach.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Stack Coach API",
    description="Supplement stack recommendation and pattern-analysis engine",
    version="0.1.0",
)

app.include_router(recommendations.router, prefix="/recommendations", tags=["recommendations"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
