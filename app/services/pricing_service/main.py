from fastapi import FastAPI, HTTPException, Query
from contextlib import asynccontextmanager
from typing import List
import logging

from app.models.models import Price
from app.services.pricing_service.price_catalog import PriceCatalog

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def create_app(catalog: PriceCatalog = None) -> FastAPI:
    """
    Builds the pricing service around a read-only price catalog.
    Without an explicit catalog, the CSV catalog is loaded at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "price_catalog", None) is None:
            app.state.price_catalog = PriceCatalog.from_data_loader()
        yield

    app = FastAPI(
        title="Pricing Service",
        description="Read-only lookup of current vehicle prices.",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.price_catalog = catalog

    @app.get("/")
    def read_root():
        """A simple endpoint to confirm the service is running."""
        return {"message": "Welcome to the Pricing Service API"}

    @app.get("/health")
    def health():
        return {"status": "ok", "prices": len(_catalog(app))}

    @app.get("/prices", response_model=List[Price])
    def list_prices():
        """Returns every price in the catalog, ordered by vehicle id."""
        return _catalog(app).all()

    @app.get("/prices/{vehicle_id}", response_model=Price)
    def get_price(vehicle_id: int):
        return _lookup(app, vehicle_id)

    @app.get("/services/price", response_model=Price)
    def get_price_by_query(vehicle_id: int = Query(..., alias="vehicleId")):
        """Query-string form of /prices/{vehicle_id}."""
        return _lookup(app, vehicle_id)

    return app


def _catalog(app: FastAPI) -> PriceCatalog:
    return app.state.price_catalog


def _lookup(app: FastAPI, vehicle_id: int) -> Price:
    logger.info(f"--- Price Lookup Request: vehicle {vehicle_id} ---")
    price = _catalog(app).get(vehicle_id)
    if price is None:
        raise HTTPException(status_code=404, detail=f"No price found for vehicle {vehicle_id}")
    return price


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.services.pricing_service.main:app", host="0.0.0.0", port=8082, reload=True)
