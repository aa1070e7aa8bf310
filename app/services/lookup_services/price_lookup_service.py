import requests
import logging
from abc import ABC, abstractmethod
from typing import Optional

from pydantic import ValidationError

from app.models.models import Price
from app.services.exceptions import EnrichmentUnavailable
from app.services.pricing_service.price_catalog import PriceCatalog

logger = logging.getLogger(__name__)


class PriceLookup(ABC):
    """
    Port to the current price of a car.

    Returns None when no price exists for the car. Raises EnrichmentUnavailable
    only when the price source itself cannot be reached or answers garbage.
    """

    @abstractmethod
    def get_price(self, car_id: int) -> Optional[Price]:
        ...


class PriceClient(PriceLookup):
    """
    Looks up prices from the pricing service over HTTP.
    """

    def __init__(self, base_url: str, timeout: float = 2.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def get_price(self, car_id: int) -> Optional[Price]:
        endpoint_url = f"{self.base_url}/prices/{car_id}"

        try:
            logger.info(f"Sending price lookup request to: {endpoint_url}")
            response = requests.get(endpoint_url, timeout=self.timeout)
            if response.status_code == 404:
                logger.info(f"Pricing service has no price for car {car_id}")
                return None
            response.raise_for_status()
            return Price.model_validate(response.json())

        except requests.exceptions.Timeout as e:
            logger.warning(f"Request to {endpoint_url} timed out.")
            raise EnrichmentUnavailable(f"Price lookup for car {car_id} timed out") from e
        except requests.exceptions.RequestException as e:
            logger.warning(f"Price lookup request to {endpoint_url} failed: {e}")
            raise EnrichmentUnavailable(f"Price lookup for car {car_id} failed: {e}") from e
        except (ValueError, ValidationError) as e:
            logger.warning(f"Pricing service returned an unreadable price for car {car_id}: {e}")
            raise EnrichmentUnavailable(f"Unreadable price for car {car_id}") from e


class CatalogPriceLookup(PriceLookup):
    """
    Reads prices straight from a PriceCatalog in the same process.
    """

    def __init__(self, catalog: PriceCatalog):
        self.catalog = catalog

    def get_price(self, car_id: int) -> Optional[Price]:
        return self.catalog.get(car_id)
