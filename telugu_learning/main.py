import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from telugu_learning.config import get_settings
from telugu_learning.database import init_db
from telugu_learning.services.catalog_service import get_catalog

# Import routers
from telugu_learning.routes import games, progress

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables, load letters
    await init_db()
    catalog = get_catalog()
    logger.info("Database initialized, %d letters loaded", len(catalog))
    logger.info("API Docs: http://localhost:8000/docs")
    yield
    logger.info("Shutting down...")


app = FastAPI(
    title=settings.APP_NAME,
    debug=settings.DEBUG,
    lifespan=lifespan
)

# Include routers
app.include_router(games.router)     # Letter match game sessions
app.include_router(progress.router)  # Lesson progress and streaks


# Health check for API
@app.get("/api/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("telugu_learning.main:app", host="0.0.0.0", port=8000, reload=True)
