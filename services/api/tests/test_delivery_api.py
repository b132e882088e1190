from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from services.api.app.models.delivery import AddressWashRequest
from services.api.app.services.delivery import (
    AddressWashError,
    precise_match,
    wash_address,
)


def test_validate_address_returns_precise_match(client: TestClient) -> None:
    response = client.post(
        "/v1/address/validate", json={"address": "Vesterbrogade 10, 1620 København V"}
    )
    assert response.status_code == 200
    assert response.json()["data"]["kategori"] == "A"


def test_validate_address_rejects_imprecise_address(client: TestClient) -> None:
    response = client.post("/v1/address/validate", json={"address": "Somewhere nice"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Adresse ikke fundet eller ikke præcis."


def test_validate_address_requires_text(client: TestClient) -> None:
    assert client.post("/v1/address/validate", json={"address": ""}).status_code == 422


def test_wash_address_echoes_customer_and_dawa_response(client: TestClient) -> None:
    payload = {
        "address": "Vesterbrogade",
        "street_number": "10",
        "postal_code": "1620",
        "city": "København V",
        "full_name": "Mette Hansen",
    }
    response = client.post("/v1/address/wash", json=payload)
    assert response.status_code == 200

    data = response.json()
    assert data["customer_details"]["full_name"] == "Mette Hansen"
    assert data["dawa_response"]["resultater"][0]["adresse"]["betegnelse"] == (
        "Vesterbrogade 10, 1620 København V"
    )


def test_wash_address_requires_address_city_and_postal_code(client: TestClient) -> None:
    response = client.post("/v1/address/wash", json={"address": "Vesterbrogade"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Address, city, and postalCode are required fields."


class _EmptyValidator:
    vendor = "DAWA_EMPTY"

    def wash(self, address_text: str) -> dict:
        del address_text
        return {"kategori": "C", "resultater": []}


def test_wash_address_without_results_fails() -> None:
    request = AddressWashRequest(address="Nowhere", postal_code="9999", city="Atlantis")
    with pytest.raises(AddressWashError, match="Address validation failed."):
        wash_address(_EmptyValidator(), request)


@pytest.mark.parametrize(
    ("response", "precise"),
    [
        ({"resultater": [{"kategori": "A"}]}, True),
        ({"kategori": "A", "resultater": [{"adresse": {}}]}, True),
        ({"resultater": [{"kategori": "B"}]}, False),
        ({"kategori": "A", "resultater": []}, False),
        ({}, False),
    ],
)
def test_precise_match(response: dict, precise: bool) -> None:
    assert (precise_match(response) is not None) is precise


def test_pickup_points(client: TestClient) -> None:
    response = client.get(
        "/v1/pickup-points",
        params={
            "city": "København V",
            "postal_code": "1620",
            "street_name": "Vesterbrogade",
            "street_number": "10",
        },
    )
    assert response.status_code == 200

    data = response.json()
    assert data["vendor"] == "POSTNORD_MOCK"
    assert [p["id"] for p in data["pickup_points"]] == ["1620-1", "1620-2", "1620-3"]
    assert all(p["country_code"] == "DK" for p in data["pickup_points"])


def test_pickup_points_require_address_fields(client: TestClient) -> None:
    response = client.get("/v1/pickup-points", params={"city": "København V"})
    assert response.status_code == 422


def test_unconfigured_postnord_is_503(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SHOP_PICKUP_ADAPTER", "postnord")
    monkeypatch.delenv("POSTNORD_API_KEY", raising=False)

    response = client.get(
        "/v1/pickup-points",
        params={
            "city": "København V",
            "postal_code": "1620",
            "street_name": "Vesterbrogade",
            "street_number": "10",
        },
    )
    assert response.status_code == 503
    assert "POSTNORD_API_KEY" in response.json()["detail"]
