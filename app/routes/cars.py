import logging
from contextlib import contextmanager
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.dependencies import get_car_service
from app.models.models import Car, CarRequest
from app.services.aggregation_services.car_aggregation_service import CarAggregationService
from app.services.exceptions import CarNotFoundError, CarValidationError, RepositoryFailure

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cars")


@contextmanager
def _service_errors(action: str):
    """Translates car service failures into HTTP errors."""
    try:
        yield
    except CarNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except CarValidationError as e:
        raise HTTPException(status_code=422, detail=jsonable_encoder(e.errors) or e.message)
    except RepositoryFailure as e:
        logger.error(f"Car storage failed while trying to {action}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Car storage is unavailable.")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to {action}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="An internal error occurred.")


def _car_resource(request: Request, car: Car) -> Dict[str, Any]:
    """Car body with HAL-style links, the shape clients of the original API expect."""
    body = jsonable_encoder(car, by_alias=True)
    body["_links"] = {
        "self": {"href": str(request.url_for("get_car", car_id=car.id))},
        "cars": {"href": str(request.url_for("list_cars"))},
    }
    return body


@router.get("", name="list_cars")
def list_cars(request: Request, car_service: CarAggregationService = Depends(get_car_service)):
    """
    Lists every car, each enriched with its current price and address.
    """
    with _service_errors("list cars"):
        cars = car_service.list()
    return {
        "_embedded": {"carList": [_car_resource(request, car) for car in cars]},
        "_links": {"self": {"href": str(request.url_for("list_cars"))}},
    }


@router.get("/{car_id}", name="get_car")
def get_car(car_id: int, request: Request, car_service: CarAggregationService = Depends(get_car_service)):
    with _service_errors(f"read car {car_id}"):
        car = car_service.find_by_id(car_id)
    return _car_resource(request, car)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_car(car: CarRequest, request: Request, car_service: CarAggregationService = Depends(get_car_service)):
    """
    Stores a new car. Any id, price, address or timestamp in the body is ignored.
    """
    with _service_errors("create a car"):
        created = car_service.create(car)
    body = _car_resource(request, created)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=body,
        headers={"Location": body["_links"]["self"]["href"]},
    )


@router.put("/{car_id}")
def update_car(car_id: int, car: CarRequest, request: Request,
               car_service: CarAggregationService = Depends(get_car_service)):
    """
    Replaces condition, details and location of an existing car.
    """
    with _service_errors(f"update car {car_id}"):
        updated = car_service.update(car_id, car)
    return _car_resource(request, updated)


@router.delete("/{car_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_car(car_id: int, car_service: CarAggregationService = Depends(get_car_service)):
    with _service_errors(f"delete car {car_id}"):
        car_service.delete(car_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
