"""
# Application Entry Point

Builds the FastAPI application for the Referral Chains API.

## Lifespan

**Startup:** connect the shared MongoDB pool (`db_manager.connect()`), timed and logged.
**Shutdown:** close the pool (`db_manager.disconnect()`).

Request handlers obtain their database handle through `db_manager.scoped_database()`, which
reuses this pool while the application is running.

## Endpoints

- Chain routes (`/getChainsList`, `/getMediaList`, `/getTopNodes`, `/searchNodes`)
- `GET /health` - MongoDB ping
- `GET /metrics` - Prometheus metrics

## Running

```bash
uvicorn referral_chains.main:app --host 127.0.0.1 --port 8000
```
"""

from contextlib import asynccontextmanager
import time

from fastapi import FastAPI, HTTPException
from prometheus_fastapi_instrumentator import Instrumentator
import uvicorn

from referral_chains import __version__
from referral_chains.config import settings
from referral_chains.database import db_manager
from referral_chains.managers.logging_manager import get_logger
from referral_chains.routes import chains_router

logger = get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Connect the database pool before serving requests and close it on shutdown.

    Raises:
        ServerSelectionTimeoutError: If MongoDB stays unreachable after every retry.
    """
    startup_start_time = time.time()
    logger.info("Initiating database connection...")
    await db_manager.connect()
    logger.info(f"Application startup completed in {time.time() - startup_start_time:.3f}s")

    try:
        yield
    finally:
        shutdown_start_time = time.time()
        logger.info("Closing database connection...")
        await db_manager.disconnect()
        logger.info(f"Application shutdown completed in {time.time() - shutdown_start_time:.3f}s")


app = FastAPI(
    title="Referral Chains API",
    description="""
    ## Referral Chains API

    Read-only queries across every referral chain:

    - **Chain directory** with invested capital per chain and in total
    - **Media record** lookup
    - **Top nodes** by subtree membership across all chains
    - **Search** by user name or node id across all chains
    """,
    version=__version__,
    lifespan=lifespan,
    redirect_slashes=False,
    openapi_tags=[
        {"name": "Chains", "description": "Chain directory, ranking and cross-chain search"},
        {"name": "System", "description": "System health and monitoring endpoints"},
    ],
)

app.include_router(chains_router)


@app.get("/health", tags=["System"])
async def health():
    """Report whether MongoDB answers a ping."""
    if not await db_manager.health_check():
        raise HTTPException(status_code=503, detail="Database unavailable")
    return {"status": "healthy", "database": "connected"}


logger.info("Setting up Prometheus metrics instrumentation...")
try:
    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        should_respect_env_var=False,
        should_instrument_requests_inprogress=True,
    )
    instrumentator.add().instrument(app).expose(app, include_in_schema=False, endpoint="/metrics")
    logger.info("Prometheus metrics instrumentation configured successfully")
except Exception as e:
    logger.error(f"Failed to configure Prometheus metrics: {e}")
    # Continue without metrics rather than failing startup


if __name__ == "__main__":
    uvicorn.run(
        "referral_chains.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG, log_level="info"
    )
