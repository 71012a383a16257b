from decimal import Decimal

import pytest


@pytest.fixture
async def shopper(make_user, headers_for):
    user = await make_user("dave")
    return user, headers_for(user)


class TestCartEndpoints:
    async def test_add_update_remove_flow(self, client, shopper, make_product):
        _, headers = shopper
        product = await make_product(price="12.50", stock=10)

        added = await client.post(
            "/api/v1/cart/items", json={"product_id": product.id, "quantity": 2}, headers=headers
        )
        assert added.status_code == 201
        body = added.json()
        assert body["message"] == "Item added to cart"
        assert Decimal(body["cart"]["total_amount"]) == Decimal("25.00")
        item = body["cart"]["items"][0]
        assert item["product"]["name"] == "Widget"
        assert Decimal(item["line_total"]) == Decimal("25.00")

        updated = await client.put(
            f"/api/v1/cart/items/{item['id']}", json={"quantity": 4}, headers=headers
        )
        assert updated.status_code == 200
        assert Decimal(updated.json()["cart"]["total_amount"]) == Decimal("50.00")

        removed = await client.delete(f"/api/v1/cart/items/{item['id']}", headers=headers)
        assert removed.status_code == 200
        assert removed.json()["cart"]["items"] == []
        assert Decimal(removed.json()["cart"]["total_amount"]) == Decimal("0")

    async def test_clear(self, client, shopper, make_product):
        _, headers = shopper
        product = await make_product()
        await client.post("/api/v1/cart/items", json={"product_id": product.id, "quantity": 1}, headers=headers)

        response = await client.delete("/api/v1/cart", headers=headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Cart cleared"
        assert response.json()["cart"]["items"] == []

    async def test_insufficient_stock_error_body(self, client, shopper, make_product):
        _, headers = shopper
        product = await make_product(name="Rare", stock=1)

        response = await client.post(
            "/api/v1/cart/items", json={"product_id": product.id, "quantity": 3}, headers=headers
        )

        assert response.status_code == 400
        assert response.json() == {
            "error": {
                "code": "INSUFFICIENT_STOCK",
                "message": "Insufficient stock for Rare. Only 1 available.",
            }
        }

    async def test_zero_quantity_is_a_validation_error(self, client, shopper, make_product):
        _, headers = shopper
        product = await make_product()

        response = await client.post(
            "/api/v1/cart/items", json={"product_id": product.id, "quantity": 0}, headers=headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_unknown_product(self, client, shopper):
        _, headers = shopper

        response = await client.post(
            "/api/v1/cart/items", json={"product_id": 4242, "quantity": 1}, headers=headers
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    async def test_unknown_item(self, client, shopper):
        _, headers = shopper

        response = await client.put("/api/v1/cart/items/999", json={"quantity": 1}, headers=headers)

        assert response.status_code == 404
