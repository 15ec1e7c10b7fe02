"""Stock items and movements"""


class TestStockItems:

    def test_create_uppercases_sku(self, client, staff_headers):
        response = client.post(
            "/api/v1/stock/",
            json={"name": "Chain Lube", "sku": "cl-400", "category": "Consumables",
                  "cost_price": 3.20, "sell_price": 7.99, "quantity": 12, "min_quantity": 4},
            headers=staff_headers
        )
        assert response.status_code == 201
        assert response.json()["sku"] == "CL-400"

    def test_duplicate_sku(self, client, staff_headers, stock_item):
        response = client.post(
            "/api/v1/stock/", json={"name": "Other pads", "sku": "bp-01"}, headers=staff_headers
        )
        assert response.status_code == 400

    def test_negative_price_is_refused(self, client, staff_headers):
        response = client.post(
            "/api/v1/stock/", json={"name": "Bad", "sell_price": -1}, headers=staff_headers
        )
        assert response.status_code == 422

    def test_lookup_by_sku(self, client, staff_headers, stock_item):
        assert client.get("/api/v1/stock/sku/bp-01", headers=staff_headers).json()["id"] == stock_item.id
        assert client.get("/api/v1/stock/sku/NOPE", headers=staff_headers).status_code == 404

    def test_list_and_categories(self, client, staff_headers, stock_item):
        body = client.get("/api/v1/stock/", params={"search": "brake"}, headers=staff_headers).json()
        assert body["total"] == 1
        assert client.get("/api/v1/stock/categories/list", headers=staff_headers).json() == ["Brakes"]

    def test_only_owner_deletes(self, client, staff_headers, owner_headers, stock_item):
        assert client.delete(f"/api/v1/stock/{stock_item.id}", headers=staff_headers).status_code == 403
        assert client.delete(f"/api/v1/stock/{stock_item.id}", headers=owner_headers).status_code == 200
        body = client.get("/api/v1/stock/", headers=owner_headers).json()
        assert body["total"] == 0


class TestStockMovements:

    def test_adjust_records_movement(self, client, staff_headers, stock_item):
        response = client.patch(
            f"/api/v1/stock/{stock_item.id}/stock",
            json={"quantity_change": -2, "reason": "Damaged"},
            headers=staff_headers
        )
        assert response.status_code == 200
        assert response.json()["quantity"] == 3

        movements = client.get(f"/api/v1/stock/{stock_item.id}/movements", headers=staff_headers).json()
        assert len(movements) == 1
        assert movements[0]["type"] == "adjustment"
        assert movements[0]["quantity"] == -2
        assert movements[0]["notes"] == "Damaged"

    def test_positive_count_correction(self, client, staff_headers, stock_item):
        response = client.patch(
            f"/api/v1/stock/{stock_item.id}/stock",
            json={"quantity_change": 4, "reason": "Recount"},
            headers=staff_headers
        )
        assert response.json()["quantity"] == 9

        movement = client.get(f"/api/v1/stock/{stock_item.id}/movements", headers=staff_headers).json()[0]
        assert movement["type"] == "adjustment"
        assert movement["quantity"] == 4
        assert movement["reference"] == "Manual adjustment"

    def test_cannot_go_below_zero(self, client, staff_headers, stock_item):
        response = client.patch(
            f"/api/v1/stock/{stock_item.id}/stock", json={"quantity_change": -6}, headers=staff_headers
        )
        assert response.status_code == 400

    def test_zero_change_is_refused(self, client, staff_headers, stock_item):
        response = client.patch(
            f"/api/v1/stock/{stock_item.id}/stock", json={"quantity_change": 0}, headers=staff_headers
        )
        assert response.status_code == 400

    def test_low_stock_alert(self, client, staff_headers, stock_item):
        assert client.get("/api/v1/stock/alerts/low-stock", headers=staff_headers).json() == []

        client.patch(f"/api/v1/stock/{stock_item.id}/stock", json={"quantity_change": -4}, headers=staff_headers)

        alerts = client.get("/api/v1/stock/alerts/low-stock", headers=staff_headers).json()
        assert len(alerts) == 1
        assert alerts[0]["current_stock"] == 1
        assert alerts[0]["needs_reorder"] is False
