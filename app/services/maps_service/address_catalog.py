import logging
import pandas as pd
from typing import Optional

from app.models.models import Address
from app.utils.data_loader import DataLoader

logger = logging.getLogger(__name__)

ADDRESS_COLUMNS = ['lat', 'lon', 'address', 'city', 'state', 'zip']


class AddressCatalog:
    """
    Read-only store of known addresses, looked up by approximate coordinates.
    A query matches the nearest entry if it lies within `tolerance` degrees.
    """

    def __init__(self, addresses: pd.DataFrame, tolerance: float = 0.05):
        missing = [column for column in ADDRESS_COLUMNS if column not in addresses.columns]
        if missing:
            raise ValueError(f"Address table is missing columns: {missing}")
        self._addresses = addresses[ADDRESS_COLUMNS].copy().reset_index(drop=True)
        self.tolerance = tolerance
        logger.info(f"AddressCatalog initialized with {len(self._addresses)} addresses (tolerance={tolerance})")

    @classmethod
    def from_data_loader(cls, data_loader: DataLoader = None, tolerance: float = 0.05) -> "AddressCatalog":
        data_loader = data_loader or DataLoader()
        return cls(data_loader.load_addresses(), tolerance=tolerance)

    def nearest(self, lat: float, lon: float) -> Optional[Address]:
        """Returns the address closest to (lat, lon), or None if nothing is close enough."""
        if self._addresses.empty:
            return None

        distances = ((self._addresses['lat'] - lat) ** 2 + (self._addresses['lon'] - lon) ** 2) ** 0.5
        idx = distances.idxmin()
        if distances[idx] > self.tolerance:
            logger.info(f"No address within {self.tolerance} degrees of ({lat}, {lon})")
            return None

        row = self._addresses.loc[idx]
        return Address(
            address=row['address'],
            city=_optional(row['city']),
            state=_optional(row['state']),
            zip=_optional(row['zip']),
        )

    def __len__(self) -> int:
        return len(self._addresses)


def _optional(value) -> Optional[str]:
    return None if pd.isna(value) else str(value)
