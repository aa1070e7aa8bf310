import logging
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, List, Optional

from app.models.models import Price
from app.utils.data_loader import DataLoader

logger = logging.getLogger(__name__)


class PriceCatalog:
    """
    Read-only store of current prices keyed by vehicle id.
    Built once and handed to whoever serves prices; nothing can mutate it afterwards.
    """

    def __init__(self, prices: Dict[int, Price]):
        self._prices = MappingProxyType(dict(prices))
        logger.info(f"PriceCatalog initialized with {len(self._prices)} prices")

    @classmethod
    def from_data_loader(cls, data_loader: DataLoader = None) -> "PriceCatalog":
        data_loader = data_loader or DataLoader()
        df = data_loader.load_prices()
        prices = {
            int(row.vehicle_id): Price(vehicle_id=int(row.vehicle_id), currency=row.currency, price=Decimal(row.price))
            for row in df.itertuples(index=False)
        }
        return cls(prices)

    def get(self, vehicle_id: int) -> Optional[Price]:
        price = self._prices.get(vehicle_id)
        if price is None:
            logger.info(f"No price found for vehicle {vehicle_id}")
        return price

    def all(self) -> List[Price]:
        return [self._prices[vehicle_id] for vehicle_id in sorted(self._prices)]

    def __len__(self) -> int:
        return len(self._prices)
