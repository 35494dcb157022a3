import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from hackconnect.config import DATABASE_URL, LOG_LEVEL
from hackconnect.database import create_db_and_tables, create_db_engine
from hackconnect.handlers import register_exception_handlers
from hackconnect.logging_setup import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup: open the storage engine and create tables
    setup_logging(LOG_LEVEL)
    engine = create_db_engine(DATABASE_URL)
    create_db_and_tables(engine)
    app.state.engine = engine
    logger.info("HackConnect API started")
    yield
    # Shutdown: release pooled connections
    engine.dispose()
    logger.info("HackConnect API stopped")


# Initialize FastAPI app
app = FastAPI(
    title="HackConnect API",
    description="Find teammates, form hackathon teams and track team tasks",
    version="1.0.0",
    lifespan=lifespan
)

register_exception_handlers(app)

# Include routers
from hackconnect.routers import auth, users, match, teams, tasks

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(match.router)
app.include_router(teams.router)
app.include_router(tasks.router)


@app.get("/")
async def root():
    return {"message": "HackConnect API is running..."}


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
