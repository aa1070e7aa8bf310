from pydantic import BaseModel, ConfigDict, Field, conint, constr, field_validator
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

# First production automobile; anything earlier is not a plausible model year.
MIN_VEHICLE_YEAR = 1886


def _max_vehicle_year() -> int:
    # Next year's models go on sale during the current calendar year
    return date.today().year + 1


class Condition(str, Enum):
    NEW = "NEW"
    USED = "USED"


class Manufacturer(BaseModel):
    code: conint(ge=0)
    name: constr(strip_whitespace=True, min_length=1)


class Details(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    manufacturer: Manufacturer
    model: constr(strip_whitespace=True, min_length=1)
    body: constr(strip_whitespace=True, min_length=1)
    mileage: conint(ge=0)
    external_color: constr(strip_whitespace=True, min_length=1) = Field(..., alias="externalColor")
    engine: constr(strip_whitespace=True, min_length=1)
    fuel_type: constr(strip_whitespace=True, min_length=1) = Field(..., alias="fuelType")
    model_year: int = Field(..., alias="modelYear")
    production_year: int = Field(..., alias="productionYear")
    number_of_doors: conint(ge=0) = Field(..., alias="numberOfDoors")

    @field_validator("model_year", "production_year")
    @classmethod
    def plausible_year(cls, value: int) -> int:
        if not MIN_VEHICLE_YEAR <= value <= _max_vehicle_year():
            raise ValueError(f"must be a calendar year between {MIN_VEHICLE_YEAR} and {_max_vehicle_year()}")
        return value


class Coordinates(BaseModel):
    """Latitude/longitude pair. The only part of a location that is stored."""
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class Location(Coordinates):
    """
    A car's location as shown to clients.
    The address parts are filled in by enrichment and never persisted.
    """
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None


class Car(BaseModel):
    """
    Full car resource: authoritative fields plus the derived `price` and
    location address. Response shape only; writes are read through
    CarRequest.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = None
    condition: Condition
    details: Details
    location: Location
    price: Optional[str] = None
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    modified_at: Optional[datetime] = Field(None, alias="modifiedAt")


class CarRequest(BaseModel):
    """
    Body of a create or update. Only the authoritative fields are read;
    id, price, address parts and timestamps sent back by a client are
    discarded without being validated.
    """
    condition: Condition
    details: Details
    location: Coordinates


class CarRecord(BaseModel):
    """The authoritative car fields as held by a CarRepository."""
    id: Optional[int] = None
    condition: Condition
    details: Details
    location: Coordinates
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None


class Price(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    vehicle_id: int = Field(..., alias="vehicleId")
    currency: constr(strip_whitespace=True, to_upper=True, min_length=3, max_length=3)
    price: Decimal = Field(..., ge=0)


class Address(BaseModel):
    address: str
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
