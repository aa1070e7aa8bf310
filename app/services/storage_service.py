import logging
from datetime import timezone
from typing import List, Optional

from pymongo import MongoClient, ASCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from app import config
from app.models.models import CarRecord
from app.services.car_repository import CarRepository, utcnow
from app.services.exceptions import RepositoryFailure

logger = logging.getLogger(__name__)

CARS_COLLECTION = "cars"
COUNTERS_COLLECTION = "counters"


class MongoCarRepository(CarRepository):
    """
    CarRepository backed by MongoDB.

    Car ids come from a monotonically increasing counter document, so an id is
    never handed out twice even after the car holding it is deleted. Every
    write is a single-document atomic operation.
    """

    def __init__(self, client: MongoClient = None, db_name: str = None):
        self.MONGO_DB_NAME = db_name or config.MONGO_DB_NAME
        self._client = client
        self._db = None
        self.connect()

    def connect(self):
        try:
            if self._client is None:
                self._client = MongoClient(
                    config.MONGO_HOST,
                    config.MONGO_PORT,
                    username=config.MONGO_USER or None,
                    password=config.MONGO_PASSWORD or None,
                    serverSelectionTimeoutMS=5000,
                    tz_aware=True,
                )
                # The ping command is cheap and does not require auth.
                self._client.admin.command('ping')
            self._db = self._client[self.MONGO_DB_NAME]
            logger.info(f"MongoDB connection established to {self.MONGO_DB_NAME}")
        except PyMongoError as e:
            logger.error(f"MongoDB connection error: {e}")
            raise RepositoryFailure(f"Could not connect to MongoDB: {e}") from e

    def close(self):
        if self._client:
            self._client.close()
            logger.info("MongoDB connection closed.")

    @property
    def _cars(self):
        return self._db[CARS_COLLECTION]

    def _next_id(self) -> int:
        counter = self._db[COUNTERS_COLLECTION].find_one_and_update(
            {"_id": CARS_COLLECTION},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(counter["seq"])

    def create(self, record: CarRecord) -> CarRecord:
        try:
            now = utcnow()
            car_id = self._next_id()
            document = _to_document(record)
            document.update({"_id": car_id, "created_at": now, "modified_at": now})
            self._cars.insert_one(document)
            logger.info(f"Car inserted into collection {CARS_COLLECTION} with ID: {car_id}")
            return _from_document(document)
        except PyMongoError as e:
            logger.error(f"Error inserting car into collection {CARS_COLLECTION}: {e}", exc_info=True)
            raise RepositoryFailure(f"Could not create car: {e}") from e

    def find_by_id(self, car_id: int) -> Optional[CarRecord]:
        try:
            document = self._cars.find_one({"_id": car_id})
        except PyMongoError as e:
            logger.error(f"Error finding car {car_id} in collection {CARS_COLLECTION}: {e}", exc_info=True)
            raise RepositoryFailure(f"Could not read car {car_id}: {e}") from e
        return _from_document(document) if document else None

    def update(self, car_id: int, record: CarRecord) -> Optional[CarRecord]:
        replacement = _to_document(record)
        replacement["modified_at"] = utcnow()
        try:
            document = self._cars.find_one_and_update(
                {"_id": car_id},
                {"$set": replacement},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error(f"Error updating car {car_id} in collection {CARS_COLLECTION}: {e}", exc_info=True)
            raise RepositoryFailure(f"Could not update car {car_id}: {e}") from e
        if document is None:
            return None
        logger.info(f"Car {car_id} updated in collection {CARS_COLLECTION}")
        return _from_document(document)

    def delete(self, car_id: int) -> bool:
        try:
            result = self._cars.delete_one({"_id": car_id})
        except PyMongoError as e:
            logger.error(f"Error deleting car {car_id} from collection {CARS_COLLECTION}: {e}", exc_info=True)
            raise RepositoryFailure(f"Could not delete car {car_id}: {e}") from e
        logger.info(f"Documents deleted from collection {CARS_COLLECTION}: {result.deleted_count}")
        return result.deleted_count == 1

    def list(self) -> List[CarRecord]:
        try:
            documents = list(self._cars.find({}).sort("_id", ASCENDING))
        except PyMongoError as e:
            logger.error(f"Error listing collection {CARS_COLLECTION}: {e}", exc_info=True)
            raise RepositoryFailure(f"Could not list cars: {e}") from e
        return [_from_document(document) for document in documents]


def _to_document(record: CarRecord) -> dict:
    """Mutable authoritative fields only; ids and timestamps are owned by the repository."""
    return record.model_dump(mode="json", include={"condition", "details", "location"})


def _from_document(document: dict) -> CarRecord:
    data = dict(document)
    data["id"] = data.pop("_id")
    for field in ("created_at", "modified_at"):
        stamp = data.get(field)
        # BSON dates are UTC; a client without tz_aware hands them back naive
        if stamp is not None and stamp.tzinfo is None:
            data[field] = stamp.replace(tzinfo=timezone.utc)
    return CarRecord.model_validate(data)
