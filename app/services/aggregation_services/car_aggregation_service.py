import logging
import math
import time
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ValidationError

from app import config
from app.models.models import Address, Car, CarRecord, CarRequest, Coordinates, Location, Price
from app.services.car_repository import CarRepository
from app.services.exceptions import CarNotFoundError, CarValidationError, EnrichmentUnavailable
from app.services.lookup_services.location_lookup_service import LocationLookup
from app.services.lookup_services.price_lookup_service import PriceLookup

logger = logging.getLogger(__name__)

PRICE_UNAVAILABLE = "Price unavailable"


def format_price(price: Price) -> str:
    """Renders a price as currency code plus amount, e.g. "USD 12,000.00"."""
    return f"{price.currency} {price.price:,.2f}"


def create_enrichment_executor(max_workers: int = None) -> ThreadPoolExecutor:
    return ThreadPoolExecutor(
        max_workers=max(1, max_workers or config.ENRICHMENT_MAX_WORKERS),
        thread_name_prefix="car-enrichment",
    )


class _Lookup:
    """A submitted lookup that remembers when a worker picked it up."""

    def __init__(self, fn: Callable, *args):
        self._fn = fn
        self._args = args
        self.started: Optional[float] = None
        self.future: Optional[Future] = None

    def __call__(self):
        self.started = time.monotonic()
        return self._fn(*self._args)


class CarAggregationService:
    """
    Sole read/write boundary between the car store and the price/location lookups.

    Writes persist only the authoritative car fields. Every car handed back is
    enriched with a price and an address fetched fresh from the lookups; a lookup
    that fails, finds nothing or runs past the timeout degrades to the
    "Price unavailable" sentinel or an empty address, never to an error.
    Validation and missing ids are rejected before any lookup is issued.

    The service keeps no state between calls. Lookups run on an executor of
    at most max_workers threads; pass a shared one to bound the lookups in
    flight across every request, otherwise the service creates its own.
    """

    def __init__(self, repository: CarRepository, price_lookup: PriceLookup, location_lookup: LocationLookup,
                 timeout: float = None, max_workers: int = None, total_timeout: float = None,
                 executor: ThreadPoolExecutor = None):
        self.repository = repository
        self.price_lookup = price_lookup
        self.location_lookup = location_lookup
        self.timeout = config.ENRICHMENT_TIMEOUT_SECONDS if timeout is None else timeout
        self.total_timeout = config.ENRICHMENT_TOTAL_TIMEOUT_SECONDS if total_timeout is None else total_timeout
        self.max_workers = max(1, max_workers or config.ENRICHMENT_MAX_WORKERS)
        self._owns_executor = executor is None
        self.executor = executor or create_enrichment_executor(self.max_workers)

    def close(self):
        """Stops the executor if this service created it; a shared one is left running."""
        if self._owns_executor:
            self.executor.shutdown(wait=False, cancel_futures=True)

    def create(self, car: Union[CarRequest, Car, Dict[str, Any]]) -> Car:
        record = self._validate(car)
        stored = self.repository.create(record)
        logger.info(f"Created car {stored.id}")
        return self._enrich_one(stored)

    def update(self, car_id: int, car: Union[CarRequest, Car, Dict[str, Any]]) -> Car:
        record = self._validate(car)
        stored = self.repository.update(car_id, record)
        if stored is None:
            raise CarNotFoundError(car_id)
        logger.info(f"Updated car {car_id}")
        return self._enrich_one(stored)

    def find_by_id(self, car_id: int) -> Car:
        stored = self.repository.find_by_id(car_id)
        if stored is None:
            raise CarNotFoundError(car_id)
        return self._enrich_one(stored)

    def list(self) -> List[Car]:
        records = self.repository.list()
        logger.info(f"Listing {len(records)} cars")
        return self._enrich(records)

    def delete(self, car_id: int) -> None:
        if not self.repository.delete(car_id):
            raise CarNotFoundError(car_id)
        logger.info(f"Deleted car {car_id}")

    def _validate(self, car: Union[CarRequest, Car, Dict[str, Any]]) -> CarRecord:
        """
        Checks a client-supplied car and reduces it to its authoritative fields.
        Any id, price or address the client sent is dropped here.
        """
        data = car.model_dump(by_alias=True) if isinstance(car, BaseModel) else car
        if not isinstance(data, dict):
            raise CarValidationError(message="A car must be a JSON object")
        try:
            parsed = CarRequest.model_validate(data)
        except ValidationError as e:
            logger.info(f"Rejected car with {e.error_count()} validation error(s)")
            raise CarValidationError(e.errors(include_url=False, include_context=False)) from e

        return CarRecord(
            condition=parsed.condition,
            details=parsed.details,
            location=parsed.location,
        )

    def _enrich_one(self, record: CarRecord) -> Car:
        return self._enrich([record])[0]

    def _enrich(self, records: List[CarRecord]) -> List[Car]:
        """
        Enriches every record, preserving input order.
        Lookups queue behind each other in waves of max_workers. Each one may
        run for `timeout` once started, and the whole batch waits no longer
        than timeout * waves or total_timeout, whichever is smaller.
        """
        if not records:
            return []

        waves = math.ceil(2 * len(records) / self.max_workers)
        deadline = time.monotonic() + min(self.timeout * waves, self.total_timeout)

        pending = []
        try:
            for record in records:
                pending.append((
                    record,
                    self._submit(self._lookup_price, record.id),
                    self._submit(self._lookup_address, record.location),
                ))
            return [
                self._merge(
                    record,
                    self._wait_for(price, deadline, f"price of car {record.id}"),
                    self._wait_for(address, deadline, f"address of car {record.id}"),
                )
                for record, price, address in pending
            ]
        finally:
            # Lookups still queued are dropped so they do not hold workers
            for _, price, address in pending:
                price.future.cancel()
                address.future.cancel()

    def _submit(self, fn: Callable, *args) -> _Lookup:
        lookup = _Lookup(fn, *args)
        lookup.future = self.executor.submit(lookup)
        return lookup

    def _lookup_price(self, car_id: int) -> Optional[Price]:
        try:
            return self.price_lookup.get_price(car_id)
        except EnrichmentUnavailable as e:
            logger.warning(f"Price unavailable for car {car_id}: {e}")
        except Exception as e:
            logger.warning(f"Price lookup for car {car_id} raised unexpectedly: {e}", exc_info=True)
        return None

    def _lookup_address(self, location: Coordinates) -> Optional[Address]:
        try:
            return self.location_lookup.get_address(location.lat, location.lon)
        except EnrichmentUnavailable as e:
            logger.warning(f"Address unavailable for ({location.lat}, {location.lon}): {e}")
        except Exception as e:
            logger.warning(f"Address lookup for ({location.lat}, {location.lon}) raised unexpectedly: {e}", exc_info=True)
        return None

    def _wait_for(self, lookup: _Lookup, deadline: float, what: str):
        """
        Waits until the lookup has run for `timeout` seconds or the batch
        deadline passes. Time spent queued does not count against the lookup.
        """
        while not lookup.future.done():
            now = time.monotonic()
            limit = deadline if lookup.started is None else min(deadline, lookup.started + self.timeout)
            if now >= limit:
                lookup.future.cancel()
                logger.warning(f"Timed out waiting for {what}")
                return None
            try:
                return lookup.future.result(timeout=min(limit - now, self.timeout))
            except FutureTimeoutError:
                continue
        return lookup.future.result()

    @staticmethod
    def _merge(record: CarRecord, price: Optional[Price], address: Optional[Address]) -> Car:
        location = Location(lat=record.location.lat, lon=record.location.lon)
        if address is not None:
            location = location.model_copy(update=address.model_dump())

        return Car(
            id=record.id,
            condition=record.condition,
            details=record.details,
            location=location,
            price=format_price(price) if price is not None else PRICE_UNAVAILABLE,
            created_at=record.created_at,
            modified_at=record.modified_at,
        )
