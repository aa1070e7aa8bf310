from app.services.exceptions import RepositoryFailure

from conftest import make_car_payload


def test_root(client):
    r = client.get("/")
    assert r.status_code == 200
    assert "Vehicles API" in r.json()["message"]


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_car_lifecycle(client, price_lookup):
    price_lookup.set_price(1, "12000")

    created = client.post("/cars", json=make_car_payload())
    assert created.status_code == 201
    body = created.json()
    car_id = body["id"]
    assert car_id is not None
    assert created.headers["location"].endswith(f"/cars/{car_id}")
    assert body["price"] == "USD 12,000.00"
    assert body["location"]["address"] == "39-01 Queens Blvd"

    listed = client.get("/cars")
    assert listed.status_code == 200
    car_list = listed.json()["_embedded"]["carList"]
    assert len(car_list) == 1
    assert car_list[0]["id"] == car_id
    assert car_list[0]["details"]["model"] == "Impala"
    assert car_list[0]["details"]["body"] == "sedan"

    updated_payload = make_car_payload(condition="NEW")
    updated = client.put(f"/cars/{car_id}", json=updated_payload)
    assert updated.status_code == 200
    assert updated.json()["condition"] == "NEW"

    deleted = client.delete(f"/cars/{car_id}")
    assert deleted.status_code == 204

    missing = client.get(f"/cars/{car_id}")
    assert missing.status_code == 404


def test_find_car(client):
    car_id = client.post("/cars", json=make_car_payload()).json()["id"]

    r = client.get(f"/cars/{car_id}")

    assert r.status_code == 200
    body = r.json()
    assert body["id"] == car_id
    assert body["details"]["model"] == "Impala"
    assert body["details"]["externalColor"] == "white"
    assert body["_links"]["self"]["href"].endswith(f"/cars/{car_id}")
    assert body["_links"]["cars"]["href"].endswith("/cars")


def test_response_shape_is_stable_when_enrichment_fails(client, price_lookup, location_lookup):
    healthy = client.post("/cars", json=make_car_payload()).json()
    price_lookup.error = RuntimeError("down")
    location_lookup.error = RuntimeError("down")

    degraded = client.get(f"/cars/{healthy['id']}").json()

    assert degraded.keys() == healthy.keys()
    assert degraded["location"].keys() == healthy["location"].keys()
    assert degraded["price"] == "Price unavailable"
    assert degraded["location"]["address"] is None


def test_list_when_empty(client):
    r = client.get("/cars")
    assert r.status_code == 200
    assert r.json()["_embedded"]["carList"] == []


def test_create_invalid_car(client):
    payload = make_car_payload()
    payload["details"]["mileage"] = -10

    r = client.post("/cars", json=payload)

    assert r.status_code == 422


def test_create_missing_location(client):
    payload = make_car_payload()
    del payload["location"]

    assert client.post("/cars", json=payload).status_code == 422


def test_update_unknown_car(client):
    r = client.put("/cars/99", json=make_car_payload())
    assert r.status_code == 404


def test_delete_unknown_car(client):
    r = client.delete("/cars/99")
    assert r.status_code == 404


def test_delete_twice(client):
    car_id = client.post("/cars", json=make_car_payload()).json()["id"]

    assert client.delete(f"/cars/{car_id}").status_code == 204
    assert client.delete(f"/cars/{car_id}").status_code == 404


def test_repository_failure_is_a_server_error(client, car_service, monkeypatch):
    def broken_list():
        raise RepositoryFailure("store down")

    monkeypatch.setattr(car_service.repository, "list", broken_list)

    r = client.get("/cars")

    assert r.status_code == 500
    assert r.json()["detail"] == "Car storage is unavailable."


def _with_foreign_derived_fields(payload: dict) -> dict:
    payload.update(id=999, price=12000, createdAt="last tuesday", modifiedAt=17)
    payload["location"].update(address=42, city=None, state=["NY"], zip=11104)
    return payload


def test_create_ignores_derived_fields_of_any_type(client, price_lookup, repository):
    price_lookup.set_price(1, "12000")

    r = client.post("/cars", json=_with_foreign_derived_fields(make_car_payload()))

    assert r.status_code == 201
    body = r.json()
    assert body["id"] == 1
    assert body["price"] == "USD 12,000.00"
    assert body["location"]["zip"] == "11104"
    assert body["location"]["address"] == "39-01 Queens Blvd"
    assert body["createdAt"] != "last tuesday"
    assert set(repository.find_by_id(1).location.model_dump()) == {"lat", "lon"}


def test_update_ignores_derived_fields_of_any_type(client):
    car_id = client.post("/cars", json=make_car_payload()).json()["id"]
    payload = _with_foreign_derived_fields(make_car_payload(condition="NEW"))

    r = client.put(f"/cars/{car_id}", json=payload)

    assert r.status_code == 200
    assert r.json()["id"] == car_id
    assert r.json()["condition"] == "NEW"
    assert r.json()["price"] == "Price unavailable"
