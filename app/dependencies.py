"""Builds the collaborators of the vehicles API from configuration."""
import logging
from concurrent.futures import ThreadPoolExecutor
from functools import lru_cache

from fastapi import Depends

from app import config
from app.services.aggregation_services.car_aggregation_service import CarAggregationService, create_enrichment_executor
from app.services.car_repository import CarRepository, InMemoryCarRepository
from app.services.lookup_services.location_lookup_service import CatalogLocationLookup, LocationLookup, MapsClient
from app.services.lookup_services.price_lookup_service import CatalogPriceLookup, PriceClient, PriceLookup
from app.services.maps_service.address_catalog import AddressCatalog
from app.services.pricing_service.price_catalog import PriceCatalog

logger = logging.getLogger(__name__)


@lru_cache()
def get_car_repository() -> CarRepository:
    backend = config.CAR_REPOSITORY_BACKEND.lower()
    if backend == "mongo":
        from app.services.storage_service import MongoCarRepository
        return MongoCarRepository()
    if backend != "memory":
        raise ValueError(f"Unknown CAR_REPOSITORY_BACKEND '{config.CAR_REPOSITORY_BACKEND}'")
    logger.info("Using in-memory car repository")
    return InMemoryCarRepository()


@lru_cache()
def get_enrichment_executor() -> ThreadPoolExecutor:
    logger.info(f"Enrichment executor bounded to {config.ENRICHMENT_MAX_WORKERS} workers")
    return create_enrichment_executor(config.ENRICHMENT_MAX_WORKERS)


@lru_cache()
def get_price_lookup() -> PriceLookup:
    if config.ENRICHMENT_TRANSPORT.lower() == "local":
        return CatalogPriceLookup(PriceCatalog.from_data_loader())
    return PriceClient(config.PRICING_SERVICE_URL, timeout=config.ENRICHMENT_TIMEOUT_SECONDS)


@lru_cache()
def get_location_lookup() -> LocationLookup:
    if config.ENRICHMENT_TRANSPORT.lower() == "local":
        return CatalogLocationLookup(AddressCatalog.from_data_loader(tolerance=config.MAPS_MATCH_TOLERANCE_DEGREES))
    return MapsClient(config.MAPS_SERVICE_URL, timeout=config.ENRICHMENT_TIMEOUT_SECONDS)


def get_car_service(
    repository: CarRepository = Depends(get_car_repository),
    price_lookup: PriceLookup = Depends(get_price_lookup),
    location_lookup: LocationLookup = Depends(get_location_lookup),
    executor: ThreadPoolExecutor = Depends(get_enrichment_executor),
) -> CarAggregationService:
    return CarAggregationService(repository, price_lookup, location_lookup, executor=executor)
