import itertools
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional

from app.models.models import CarRecord

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CarRepository(ABC):
    """
    Port for durable storage of the authoritative car fields.

    Implementations assign ids on create, never reuse an id after deletion,
    maintain created_at/modified_at, and apply each update as one full replace
    (last writer wins). They know nothing about prices or addresses.
    Infrastructure failures surface as RepositoryFailure.
    """

    @abstractmethod
    def create(self, record: CarRecord) -> CarRecord:
        """Stores a new car and returns it with its assigned id and timestamps."""

    @abstractmethod
    def find_by_id(self, car_id: int) -> Optional[CarRecord]:
        """Returns the stored car, or None if the id does not exist."""

    @abstractmethod
    def update(self, car_id: int, record: CarRecord) -> Optional[CarRecord]:
        """Replaces condition, details and location of an existing car. None if the id does not exist."""

    @abstractmethod
    def delete(self, car_id: int) -> bool:
        """Removes the car. False if the id did not exist."""

    @abstractmethod
    def list(self) -> List[CarRecord]:
        """Returns every stored car in storage (id) order."""


class InMemoryCarRepository(CarRepository):
    """
    Process-local repository. Records are kept in insertion order and copied
    on the way in and out so callers never share state with the store.
    """

    def __init__(self):
        self._cars: Dict[int, CarRecord] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def create(self, record: CarRecord) -> CarRecord:
        now = utcnow()
        with self._lock:
            car_id = next(self._ids)
            stored = record.model_copy(update={"id": car_id, "created_at": now, "modified_at": now}, deep=True)
            self._cars[car_id] = stored
        logger.info(f"Car {car_id} created in memory")
        return stored.model_copy(deep=True)

    def find_by_id(self, car_id: int) -> Optional[CarRecord]:
        with self._lock:
            stored = self._cars.get(car_id)
            return stored.model_copy(deep=True) if stored is not None else None

    def update(self, car_id: int, record: CarRecord) -> Optional[CarRecord]:
        with self._lock:
            current = self._cars.get(car_id)
            if current is None:
                return None
            stored = current.model_copy(
                update={
                    "condition": record.condition,
                    "details": record.details.model_copy(deep=True),
                    "location": record.location.model_copy(deep=True),
                    "modified_at": utcnow(),
                },
            )
            self._cars[car_id] = stored
        logger.info(f"Car {car_id} updated in memory")
        return stored.model_copy(deep=True)

    def delete(self, car_id: int) -> bool:
        with self._lock:
            removed = self._cars.pop(car_id, None)
        if removed is not None:
            logger.info(f"Car {car_id} deleted from memory")
        return removed is not None

    def list(self) -> List[CarRecord]:
        with self._lock:
            return [stored.model_copy(deep=True) for stored in self._cars.values()]
