from decimal import Decimal

from sqlalchemy import select

from storefront.models import OrderItem, ProductStatus

ORDER_REQUEST = {
    "payment_method": "bank_transfer",
    "shipping_address": "1 Main Street",
    "shipping_phone": "13800000000",
}


class TestProductListing:
    async def test_lists_only_products_on_sale(self, client, make_product):
        on_sale = await make_product(name="Kettle")
        await make_product(name="Retired", status=ProductStatus.INACTIVE)
        await make_product(name="Gone", stock=0)

        response = await client.get("/api/v1/products")

        assert response.status_code == 200
        assert response.json()["total"] == 1
        assert [p["id"] for p in response.json()["products"]] == [on_sale.id]


class TestProductUpdate:
    async def test_stock_change_rederives_status(self, client, admin_headers, make_product):
        product = await make_product(stock=3)

        emptied = await client.put(
            f"/api/v1/products/{product.id}", json={"stock": 0}, headers=admin_headers
        )
        assert emptied.status_code == 200
        assert emptied.json()["product"]["status"] == "out_of_stock"

        restocked = await client.put(
            f"/api/v1/products/{product.id}", json={"stock": 7}, headers=admin_headers
        )
        assert restocked.json()["product"]["status"] == "active"
        assert restocked.json()["product"]["stock"] == 7
        assert restocked.json()["message"] == "Product updated"

    async def test_partial_update_keeps_other_fields(self, client, admin_headers, make_product):
        product = await make_product(name="Lamp", price="20.00", stock=4)

        response = await client.put(
            f"/api/v1/products/{product.id}", json={"price": "25.00", "stock": None}, headers=admin_headers
        )

        body = response.json()["product"]
        assert Decimal(body["price"]) == Decimal("25.00")
        assert body["name"] == "Lamp"
        assert body["stock"] == 4

    async def test_discount_above_current_price(self, client, admin_headers, make_product):
        product = await make_product(price="20.00")

        response = await client.put(
            f"/api/v1/products/{product.id}", json={"discount_price": "21.00"}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "BAD_REQUEST"

    async def test_requires_admin(self, client, make_user, headers_for, make_product):
        product = await make_product()
        headers = headers_for(await make_user("gina"))

        response = await client.put(f"/api/v1/products/{product.id}", json={"stock": 1}, headers=headers)

        assert response.status_code == 403

    async def test_unknown_product(self, client, admin_headers):
        response = await client.put("/api/v1/products/999", json={"stock": 1}, headers=admin_headers)

        assert response.status_code == 404


class TestProductDelete:
    async def test_order_history_survives_deletion(
        self, client, session, database, admin_headers, make_user, headers_for, make_product, fetch_product
    ):
        buyer = await make_user("hank")
        headers = headers_for(buyer)
        product = await make_product(name="Teapot", price="30.00", stock=5)
        await client.post(
            "/api/v1/cart/items", json={"product_id": product.id, "quantity": 2}, headers=headers
        )
        order = (await client.post("/api/v1/orders", json=ORDER_REQUEST, headers=headers)).json()["order"]

        deleted = await client.delete(f"/api/v1/products/{product.id}", headers=admin_headers)
        assert deleted.status_code == 200
        assert deleted.json() == {"message": "Product deleted"}
        assert (await client.get(f"/api/v1/products/{product.id}")).status_code == 404

        async with database.session() as s:
            kept = (await s.execute(select(OrderItem.product_id))).scalars().all()
        assert kept == [None]

        # Deleted through the API, so drop the local copy before its id is reused
        session.expunge(product)
        replacement = await make_product(name="Mug", stock=10)
        cancelled = await client.put(f"/api/v1/orders/{order['id']}/cancel", headers=headers)

        assert cancelled.status_code == 200
        item = cancelled.json()["order"]["items"][0]
        assert item["product_id"] is None
        assert item["product_name"] == "Teapot"
        assert (await fetch_product(replacement.id)).stock == 10

    async def test_requires_admin(self, client, make_user, headers_for, make_product):
        product = await make_product()
        headers = headers_for(await make_user("ivy"))

        response = await client.delete(f"/api/v1/products/{product.id}", headers=headers)

        assert response.status_code == 403


class TestCategoryEndpoints:
    async def test_list(self, client, category):
        response = await client.get("/api/v1/categories")

        assert response.status_code == 200
        assert [c["name"] for c in response.json()["categories"]] == ["General"]

    async def test_update(self, client, admin_headers, category):
        response = await client.put(
            f"/api/v1/categories/{category.id}",
            json={"description": "Odds and ends"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["category"] == {
            "id": category.id,
            "name": "General",
            "description": "Odds and ends",
        }

    async def test_delete_with_products_refused(self, client, admin_headers, category, make_product):
        await make_product()

        response = await client.delete(f"/api/v1/categories/{category.id}", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "CATEGORY_NOT_EMPTY"

    async def test_delete_empty(self, client, admin_headers, category):
        response = await client.delete(f"/api/v1/categories/{category.id}", headers=admin_headers)

        assert response.status_code == 200
        assert (await client.get("/api/v1/categories")).json()["categories"] == []
