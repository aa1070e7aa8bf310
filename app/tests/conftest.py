import time
from decimal import Decimal
from typing import Dict, Optional, Set, Tuple

import pytest
from fastapi.testclient import TestClient

from app.dependencies import get_car_service
from app.models.models import Address, Price
from app.services.aggregation_services.car_aggregation_service import CarAggregationService
from app.services.car_repository import InMemoryCarRepository
from app.services.lookup_services.location_lookup_service import LocationLookup
from app.services.lookup_services.price_lookup_service import PriceLookup

IMPALA_LOCATION = (40.730610, -73.935242)


class FakePriceLookup(PriceLookup):
    """Price lookup whose answers, failures and latency are set by the test."""

    def __init__(self):
        self.prices: Dict[int, Price] = {}
        self.error: Optional[Exception] = None
        self.failing_ids: Set[int] = set()
        self.delay = 0.0
        self.calls = []

    def get_price(self, car_id: int) -> Optional[Price]:
        self.calls.append(car_id)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if car_id in self.failing_ids:
            raise RuntimeError(f"pricing blew up for {car_id}")
        return self.prices.get(car_id)

    def set_price(self, car_id: int, amount: str, currency: str = "USD"):
        self.prices[car_id] = Price(vehicle_id=car_id, currency=currency, price=Decimal(amount))


class FakeLocationLookup(LocationLookup):
    """Location lookup whose answers, failures and latency are set by the test."""

    def __init__(self):
        self.addresses: Dict[Tuple[float, float], Address] = {}
        self.error: Optional[Exception] = None
        self.delay = 0.0
        self.calls = []

    def get_address(self, lat: float, lon: float) -> Optional[Address]:
        self.calls.append((lat, lon))
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.addresses.get((lat, lon))


def make_car_payload(**overrides) -> dict:
    """An example car as a client would send it."""
    payload = {
        "condition": "USED",
        "details": {
            "manufacturer": {"code": 101, "name": "Chevrolet"},
            "model": "Impala",
            "body": "sedan",
            "mileage": 32280,
            "externalColor": "white",
            "engine": "3.6L V6",
            "fuelType": "Gasoline",
            "modelYear": 2018,
            "productionYear": 2018,
            "numberOfDoors": 4,
        },
        "location": {"lat": IMPALA_LOCATION[0], "lon": IMPALA_LOCATION[1]},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def car_payload():
    return make_car_payload()


@pytest.fixture
def repository():
    return InMemoryCarRepository()


@pytest.fixture
def price_lookup():
    return FakePriceLookup()


@pytest.fixture
def location_lookup():
    lookup = FakeLocationLookup()
    lookup.addresses[IMPALA_LOCATION] = Address(
        address="39-01 Queens Blvd", city="Long Island City", state="NY", zip="11104"
    )
    return lookup


@pytest.fixture
def car_service(repository, price_lookup, location_lookup):
    service = CarAggregationService(repository, price_lookup, location_lookup, timeout=1.0, max_workers=4)
    yield service
    service.close()


@pytest.fixture
def client(car_service):
    from main import app

    app.dependency_overrides[get_car_service] = lambda: car_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
