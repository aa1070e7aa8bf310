from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
import requests

from app.services.exceptions import EnrichmentUnavailable
from app.services.lookup_services.location_lookup_service import CatalogLocationLookup, MapsClient
from app.services.lookup_services.price_lookup_service import CatalogPriceLookup, PriceClient

PRICE_GET = "app.services.lookup_services.price_lookup_service.requests.get"
MAPS_GET = "app.services.lookup_services.location_lookup_service.requests.get"


def _response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} error")
    return response


def test_price_client_returns_price():
    client = PriceClient("http://pricing:8082/", timeout=1.5)

    with patch(PRICE_GET, return_value=_response(payload={"vehicleId": 1, "currency": "USD", "price": "12000.00"})) as get:
        price = client.get_price(1)

    get.assert_called_once_with("http://pricing:8082/prices/1", timeout=1.5)
    assert price.vehicle_id == 1
    assert price.price == Decimal("12000.00")


def test_price_client_not_found_is_none():
    with patch(PRICE_GET, return_value=_response(404)):
        assert PriceClient("http://pricing:8082").get_price(2) is None


@pytest.mark.parametrize("error", [
    requests.exceptions.Timeout("slow"),
    requests.exceptions.ConnectionError("refused"),
])
def test_price_client_transport_failure(error):
    with patch(PRICE_GET, side_effect=error):
        with pytest.raises(EnrichmentUnavailable):
            PriceClient("http://pricing:8082").get_price(1)


def test_price_client_server_error():
    with patch(PRICE_GET, return_value=_response(503)):
        with pytest.raises(EnrichmentUnavailable):
            PriceClient("http://pricing:8082").get_price(1)


def test_price_client_garbage_body():
    with patch(PRICE_GET, return_value=_response(payload={"unexpected": True})):
        with pytest.raises(EnrichmentUnavailable):
            PriceClient("http://pricing:8082").get_price(1)


def test_maps_client_returns_address():
    payload = {"address": "39-01 Queens Blvd", "city": "Long Island City", "state": "NY", "zip": "11104"}
    client = MapsClient("http://maps:9191", timeout=0.5)

    with patch(MAPS_GET, return_value=_response(payload=payload)) as get:
        address = client.get_address(40.730610, -73.935242)

    get.assert_called_once_with(
        "http://maps:9191/maps", params={"lat": 40.730610, "lon": -73.935242}, timeout=0.5
    )
    assert address.city == "Long Island City"


def test_maps_client_not_found_is_none():
    with patch(MAPS_GET, return_value=_response(404)):
        assert MapsClient("http://maps:9191").get_address(0.0, 0.0) is None


def test_maps_client_timeout():
    with patch(MAPS_GET, side_effect=requests.exceptions.Timeout("slow")):
        with pytest.raises(EnrichmentUnavailable):
            MapsClient("http://maps:9191").get_address(0.0, 0.0)


def test_catalog_lookups_read_in_process():
    price_catalog = MagicMock()
    price_catalog.get.return_value = None
    address_catalog = MagicMock()
    address_catalog.nearest.return_value = None

    assert CatalogPriceLookup(price_catalog).get_price(2) is None
    assert CatalogLocationLookup(address_catalog).get_address(1.0, 2.0) is None
    price_catalog.get.assert_called_once_with(2)
    address_catalog.nearest.assert_called_once_with(1.0, 2.0)
