from fastapi import FastAPI, HTTPException, Query
from contextlib import asynccontextmanager
import logging

from app import config
from app.models.models import Address
from app.services.maps_service.address_catalog import AddressCatalog

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def create_app(catalog: AddressCatalog = None) -> FastAPI:
    """
    Builds the maps service around a read-only address catalog.
    Without an explicit catalog, the CSV catalog is loaded at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "address_catalog", None) is None:
            app.state.address_catalog = AddressCatalog.from_data_loader(
                tolerance=config.MAPS_MATCH_TOLERANCE_DEGREES
            )
        yield

    app = FastAPI(
        title="Maps Service",
        description="Read-only lookup of the address nearest to a pair of coordinates.",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.address_catalog = catalog

    @app.get("/health")
    def health():
        return {"status": "ok", "addresses": len(app.state.address_catalog)}

    @app.get("/maps", response_model=Address)
    def get_address(
        lat: float = Query(..., ge=-90, le=90, description="Latitude"),
        lon: float = Query(..., ge=-180, le=180, description="Longitude"),
    ):
        logger.info(f"--- Address Lookup Request: ({lat}, {lon}) ---")
        address = app.state.address_catalog.nearest(lat, lon)
        if address is None:
            raise HTTPException(status_code=404, detail=f"No address known near ({lat}, {lon})")
        return address

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.services.maps_service.main:app", host="0.0.0.0", port=9191, reload=True)
