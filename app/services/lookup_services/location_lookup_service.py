import requests
import logging
from abc import ABC, abstractmethod
from typing import Optional

from pydantic import ValidationError

from app.models.models import Address
from app.services.exceptions import EnrichmentUnavailable
from app.services.maps_service.address_catalog import AddressCatalog

logger = logging.getLogger(__name__)


class LocationLookup(ABC):
    """
    Port to a descriptive address for a pair of coordinates.

    Returns None when no address is known for the coordinates. Raises
    EnrichmentUnavailable only on transport-level failure.
    """

    @abstractmethod
    def get_address(self, lat: float, lon: float) -> Optional[Address]:
        ...


class MapsClient(LocationLookup):
    """
    Looks up addresses from the maps service over HTTP.
    """

    def __init__(self, base_url: str, timeout: float = 2.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def get_address(self, lat: float, lon: float) -> Optional[Address]:
        endpoint_url = f"{self.base_url}/maps"

        try:
            logger.info(f"Sending address lookup request to: {endpoint_url} (lat={lat}, lon={lon})")
            response = requests.get(endpoint_url, params={"lat": lat, "lon": lon}, timeout=self.timeout)
            if response.status_code == 404:
                logger.info(f"Maps service has no address for ({lat}, {lon})")
                return None
            response.raise_for_status()
            return Address.model_validate(response.json())

        except requests.exceptions.Timeout as e:
            logger.warning(f"Request to {endpoint_url} timed out.")
            raise EnrichmentUnavailable(f"Address lookup for ({lat}, {lon}) timed out") from e
        except requests.exceptions.RequestException as e:
            logger.warning(f"Address lookup request to {endpoint_url} failed: {e}")
            raise EnrichmentUnavailable(f"Address lookup for ({lat}, {lon}) failed: {e}") from e
        except (ValueError, ValidationError) as e:
            logger.warning(f"Maps service returned an unreadable address for ({lat}, {lon}): {e}")
            raise EnrichmentUnavailable(f"Unreadable address for ({lat}, {lon})") from e


class CatalogLocationLookup(LocationLookup):
    """
    Reads addresses straight from an AddressCatalog in the same process.
    """

    def __init__(self, catalog: AddressCatalog):
        self.catalog = catalog

    def get_address(self, lat: float, lon: float) -> Optional[Address]:
        return self.catalog.nearest(lat, lon)
