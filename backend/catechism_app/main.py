from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
import logging
from contextlib import asynccontextmanager

from catechism_app.core.config import settings
from catechism_app.core.database import init_db
from catechism_app.core.logging import configure_logging
from catechism_app.api.v1 import dashboard, students

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    await init_db()
    logger.info(f"{settings.APP_NAME} started")
    yield


app = FastAPI(
    title="Parish Catechism Administration API",
    description="Attendance and academic scoring for the parish catechism program",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(dashboard.router, prefix="/api/v1/dashboard", tags=["dashboard"])
app.include_router(students.router, prefix="/api/v1/students", tags=["students"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    uvicorn.run(
        "catechism_app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
