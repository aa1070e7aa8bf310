import pandas as pd
import os
from functools import lru_cache
import logging

logger = logging.getLogger(__name__)

DEFAULT_DATA_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'Data'))
PRICES_TABLE = 'prices.csv'
ADDRESSES_TABLE = 'addresses.csv'


class DataLoader:
    """
    Handles loading and caching of the catalog tables backing the pricing and maps services.
    Tables are read as strings so codes such as zip "02201" survive; callers convert columns.
    """
    def __init__(self, base_path: str = None):
        self.base_path = base_path or os.environ.get("CATALOG_DATA_PATH", DEFAULT_DATA_PATH)
        logger.info(f"DataLoader initialized with base path: {self.base_path}")
        if not os.path.isdir(self.base_path):
            logger.warning(f"Data directory not found at expected path: {self.base_path}")

    @lru_cache(maxsize=32)
    def load_table(self, table_path: str) -> pd.DataFrame:
        """Loads a CSV table into a pandas DataFrame with LRU caching."""
        full_path = os.path.join(self.base_path, table_path)
        try:
            logger.info(f"Loading table from: {full_path}")
            df = pd.read_csv(full_path, dtype=str, skipinitialspace=True)
            df.columns = df.columns.str.strip()
            return df
        except FileNotFoundError:
            logger.error(f"Failed to find table at {full_path}")
            raise
        except Exception as e:
            logger.error(f"Failed to load table {table_path}: {e}")
            raise

    def load_prices(self) -> pd.DataFrame:
        """Loads the price catalog; rows without a price are dropped."""
        df = self.load_table(PRICES_TABLE).dropna(subset=['vehicle_id', 'price'])
        df = df.assign(
            vehicle_id=df['vehicle_id'].astype(int),
            currency=df['currency'].fillna('USD').str.upper(),
        )
        return df.drop_duplicates(subset='vehicle_id', keep='last')

    def load_addresses(self) -> pd.DataFrame:
        """Loads the address catalog with numeric coordinates."""
        df = self.load_table(ADDRESSES_TABLE).dropna(subset=['lat', 'lon', 'address'])
        return df.assign(lat=df['lat'].astype(float), lon=df['lon'].astype(float)).reset_index(drop=True)
