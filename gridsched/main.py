from fastapi import FastAPI
from contextlib import asynccontextmanager
from gridsched.api.routes import router
from gridsched.utils.config import get_settings
from gridsched.utils.logger import setup_logger
import uvicorn

# -------------------------------------------------------------------
# Load application settings and initialize logger
# -------------------------------------------------------------------
settings = get_settings()
logger = setup_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager for startup and shutdown events.
    """
    logger.info("GridSched master starting up...")
    yield
    logger.info("GridSched master shutting down...")


app = FastAPI(
    title="GridSched Master",
    version="1.0.0",
    lifespan=lifespan
)

# Register API routes under versioned prefix
app.include_router(router, prefix="/api/v1")


def run():
    uvicorn.run(
        "gridsched.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )


if __name__ == "__main__":
    run()
