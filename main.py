import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from app import config
from app.dependencies import get_car_repository, get_enrichment_executor
from app.routes import health, cars

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: open the car store so a bad connection fails fast
    repository = get_car_repository()
    executor = get_enrichment_executor()
    logger.info(
        f"Vehicles API starting with {config.CAR_REPOSITORY_BACKEND} repository, "
        f"{config.ENRICHMENT_TRANSPORT} enrichment (timeout={config.ENRICHMENT_TIMEOUT_SECONDS}s, "
        f"max_workers={config.ENRICHMENT_MAX_WORKERS})"
    )
    yield
    # Shutdown: stop enrichment workers and release the store connection if it holds one
    executor.shutdown(wait=False, cancel_futures=True)
    get_enrichment_executor.cache_clear()
    close = getattr(repository, "close", None)
    if close is not None:
        close()

app = FastAPI(
    title="Vehicles API",
    description="CRUD over car listings, each enriched with its current price and location address",
    version="0.1.0",
    lifespan=lifespan
)
# CORS Middleware (if you need to enable CORS for external requests)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],  # Allows all HTTP methods
    allow_headers=["*"],  # Allows all headers
)
app.include_router(health.router, tags=["Vehicles API Health"])
app.include_router(cars.router, tags=["Cars"])

@app.get("/")
async def root():
    return {"message": "Welcome to the Vehicles API"}


# Main entry point for running the FastAPI server
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8080, reload=True)
