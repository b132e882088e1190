from __future__ import annotations

from fastapi.testclient import TestClient


def test_list_drinks_is_keyed_by_slug_and_hides_purchase_price(client: TestClient) -> None:
    response = client.get("/v1/drinks")
    assert response.status_code == 200

    drinks = response.json()["drinks"]
    assert "monster-energy" in drinks
    assert drinks["monster-energy"]["sale_price"] == 1500
    assert drinks["monster-energy"]["recycling_fee"] == 100
    assert all("purchase_price" not in d for d in drinks.values())


def test_get_drink_and_missing_drink(client: TestClient) -> None:
    ok = client.get("/v1/drinks/red-bull")
    assert ok.status_code == 200
    assert ok.json()["drink"]["title"] == "Red Bull"

    missing = client.get("/v1/drinks/does-not-exist")
    assert missing.status_code == 404


def test_drinks_by_slugs_returns_only_found(client: TestClient) -> None:
    response = client.post(
        "/v1/drinks/by-slugs", json={"slugs": ["red-bull", "booster-original", "nope"]}
    )
    assert response.status_code == 200
    assert set(response.json()["drinks"]) == {"red-bull", "booster-original"}


def test_drinks_by_slugs_requires_a_list(client: TestClient) -> None:
    response = client.post("/v1/drinks/by-slugs", json={"slugs": "red-bull"})
    assert response.status_code == 422


def test_packages_include_sizes(client: TestClient) -> None:
    response = client.get("/v1/packages")
    assert response.status_code == 200

    packages = {p["slug"]: p for p in response.json()["packages"]}
    assert {"mixed-any", "monster-mix", "red-bull-mix"} <= set(packages)
    sizes = {s["size"] for s in packages["mixed-any"]["sizes"]}
    assert sizes == {8, 12, 18}


def test_get_package_and_its_drinks(client: TestClient) -> None:
    package = client.get("/v1/packages/monster-mix")
    assert package.status_code == 200
    assert package.json()["package"]["title"] == "Monster Mix"

    drinks = client.get("/v1/packages/monster-mix/drinks")
    assert drinks.status_code == 200
    assert [d["slug"] for d in drinks.json()["drinks"]] == [
        "monster-energy",
        "monster-ultra-white",
    ]

    assert client.get("/v1/packages/nope").status_code == 404
    assert client.get("/v1/packages/nope/drinks").status_code == 404


def test_package_price_for_explicit_selection(client: TestClient) -> None:
    response = client.post(
        "/v1/packages/mixed-any/price",
        json={"selected_size": 8, "selected_products": {"booster-original": 8}},
    )
    assert response.status_code == 200
    assert response.json() == {
        "price_per_package": 8000,
        "recycling_fee_per_package": 800,
        "original_total_price": 8000,
    }


def test_package_price_for_mystery_box(client: TestClient) -> None:
    response = client.post(
        "/v1/packages/monster-mix/price",
        json={"selected_size": 8, "is_mystery_box": True},
    )
    assert response.status_code == 200
    # Both monster drinks cost the same, no discount on size 8.
    assert response.json()["price_per_package"] == 12000


def test_package_price_rejects_incomplete_selection(client: TestClient) -> None:
    response = client.post(
        "/v1/packages/mixed-any/price",
        json={"selected_size": 8, "selected_products": {"red-bull": 3}},
    )
    assert response.status_code == 400
    assert "selectedSize" in response.json()["detail"]
