# Overview: Pytest coverage for the transaction, token and price HTTP routes.

"""
API tests

Verifies:
- Unauthenticated requests return 401
- Roles are enforced per route (403)
- Domain errors map to 400/404/409
- Successful redemption and quote payloads
"""

import pytest

from fuelpass.services import redemption_service, transaction_query_service
from fuelpass.validation import ConflictError


class TestUnauthenticatedAccess:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("PATCH", "/api/transactions/token/TXN-001"),
            ("GET", "/api/transactions/TXN-001/calculate-liters?product=Diesel"),
            ("GET", "/api/transactions?pump_attendant_id=1"),
            ("GET", "/api/transactions/TXN-001"),
            ("GET", "/api/transactions/tokens/search?q=TX"),
            ("GET", "/api/transactions/filtered"),
            ("GET", "/api/transactions/filters/omcs"),
            ("GET", "/api/transactions/details/1"),
            ("POST", "/api/tokens"),
            ("GET", "/api/stations/1/prices"),
            ("PUT", "/api/stations/1/prices/1"),
            ("GET", "/api/auth/me"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/auth/me", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401


class TestRedeemRoute:
    def test_redeem(self, client, token, attendant_headers, station, diesel, diesel_override):
        resp = client.patch(
            "/api/transactions/token/TXN-001",
            json={"product_catalog_id": diesel.id, "station_id": station.id},
            headers=attendant_headers,
        )
        assert resp.status_code == 200
        body = resp.get_json()["transaction"]
        assert body["status"] == "USED"
        assert body["liters"] == "39.216"
        assert body["amount"] == "1000.00"
        assert body["station"]["name"] == "Station A"

    def test_second_redeem_is_404(self, client, token, attendant_headers, station, diesel):
        payload = {"product_catalog_id": diesel.id, "station_id": station.id}
        assert client.patch("/api/transactions/token/TXN-001", json=payload, headers=attendant_headers).status_code == 200

        resp = client.patch("/api/transactions/token/TXN-001", json=payload, headers=attendant_headers)
        assert resp.status_code == 404

    def test_lost_race_is_409(self, client, token, attendant_headers, station, diesel, monkeypatch):
        def lose(*args, **kwargs):
            raise ConflictError("Token TXN-001 was redeemed by another request")

        monkeypatch.setattr(redemption_service, "redeem", lose)
        resp = client.patch(
            "/api/transactions/token/TXN-001",
            json={"product_catalog_id": diesel.id, "station_id": station.id},
            headers=attendant_headers,
        )
        assert resp.status_code == 409

    def test_missing_station_is_400(self, client, token, attendant_headers, diesel):
        resp = client.patch(
            "/api/transactions/token/TXN-001",
            json={"product_catalog_id": diesel.id},
            headers=attendant_headers,
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Station ID is required"

    @pytest.mark.parametrize(
        "payload",
        [
            {"liters": -1},
            {"amount": "0"},
            {"amount": "12.345"},
            {"station_id": "1.5"},
            {"status": "UNUSED"},
            {"pump_attendant_id": 1},
        ],
    )
    def test_bad_payload_is_400(self, client, token, attendant_headers, payload):
        resp = client.patch("/api/transactions/token/TXN-001", json=payload, headers=attendant_headers)
        assert resp.status_code == 400

    def test_driver_cannot_redeem(self, client, token, driver_headers, station, diesel):
        resp = client.patch(
            "/api/transactions/token/TXN-001",
            json={"product_catalog_id": diesel.id, "station_id": station.id},
            headers=driver_headers,
        )
        assert resp.status_code == 403


class TestCalculateLitersRoute:
    def test_quote(self, client, token, attendant_headers, station, diesel, diesel_override):
        resp = client.get("/api/transactions/TXN-001/calculate-liters?product=Diesel", headers=attendant_headers)
        assert resp.status_code == 200
        assert resp.get_json()["liters"] == "39.215686"

    def test_product_required(self, client, token, attendant_headers):
        resp = client.get("/api/transactions/TXN-001/calculate-liters", headers=attendant_headers)
        assert resp.status_code == 400

    def test_unknown_token(self, client, attendant_headers, diesel):
        resp = client.get("/api/transactions/TXN-404/calculate-liters?product=Diesel", headers=attendant_headers)
        assert resp.status_code == 404


class TestQueryRoutes:
    def test_token_details(self, client, token, driver_headers):
        resp = client.get("/api/transactions/TXN-001", headers=driver_headers)
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "UNUSED"

    def test_token_details_404(self, client, driver_headers):
        assert client.get("/api/transactions/TXN-404", headers=driver_headers).status_code == 404

    def test_search(self, client, token, attendant_headers):
        resp = client.get("/api/transactions/tokens/search?q=txn", headers=attendant_headers)
        assert resp.get_json() == [{"token": "TXN-001"}]

    def test_own_sales_history(self, client, token, attendant, attendant_headers, station, diesel):
        redemption_service.redeem("TXN-001", attendant.id, product_catalog_id=diesel.id, station_id=station.id)

        resp = client.get(f"/api/transactions?pump_attendant_id={attendant.id}", headers=attendant_headers)
        assert resp.status_code == 200
        assert resp.get_json()["count"] == 1

    def test_other_attendants_history_forbidden(self, client, attendant_headers, other_attendant):
        resp = client.get(f"/api/transactions?pump_attendant_id={other_attendant.id}", headers=attendant_headers)
        assert resp.status_code == 403

    def test_admin_reads_any_history(self, client, admin_headers, attendant):
        resp = client.get(f"/api/transactions?pump_attendant_id={attendant.id}&page=1&limit=5", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["pagination"]["limit"] == 5

    def test_history_requires_attendant_id(self, client, admin_headers):
        assert client.get("/api/transactions", headers=admin_headers).status_code == 400
        assert client.get("/api/transactions?pump_attendant_id=abc", headers=admin_headers).status_code == 400

    def test_filtered_admin_only(self, client, token, admin_headers, attendant_headers):
        assert client.get("/api/transactions/filtered", headers=attendant_headers).status_code == 403

        resp = client.get("/api/transactions/filtered?page=1&limit=10", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["pagination"]["total"] == 1

    def test_details_admin(self, client, token, admin_headers):
        resp = client.get(f"/api/transactions/details/{token.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert client.get("/api/transactions/details/99999", headers=admin_headers).status_code == 404

    def test_omc_filters(self, client, admin_headers, omc, station):
        resp = client.get(f"/api/transactions/filters/omcs?omc_id={omc.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json() == transaction_query_service.get_omc_filters(omc.id)


class TestTokenRoutes:
    def test_driver_buys_token(self, client, driver, driver_headers):
        resp = client.post("/api/tokens", json={"amount": "750"}, headers=driver_headers)
        assert resp.status_code == 201
        body = resp.get_json()["transaction"]
        assert body["amount"] == "750.00"
        assert body["status"] == "UNUSED"
        assert body["driver_id"] == driver.id

    def test_amount_required(self, client, driver_headers):
        assert client.post("/api/tokens", json={}, headers=driver_headers).status_code == 400

    def test_invalid_amount(self, client, driver_headers):
        assert client.post("/api/tokens", json={"amount": "-5"}, headers=driver_headers).status_code == 400

    def test_attendant_cannot_buy(self, client, attendant_headers):
        assert client.post("/api/tokens", json={"amount": "750"}, headers=attendant_headers).status_code == 403


class TestPriceRoutes:
    def test_list_prices(self, client, attendant_headers, station, diesel, gasoline, diesel_override):
        resp = client.get(f"/api/stations/{station.id}/prices", headers=attendant_headers)
        assert resp.status_code == 200
        assert resp.get_json()["count"] == 2

    def test_resolve_price(self, client, attendant_headers, station, diesel, diesel_override):
        resp = client.get(f"/api/stations/{station.id}/prices/{diesel.id}", headers=attendant_headers)
        assert resp.get_json() == {
            "station_id": station.id,
            "catalog_id": diesel.id,
            "price": "25.50",
            "source": "station",
        }

    def test_resolve_price_unknown_station(self, client, attendant_headers, diesel):
        resp = client.get(f"/api/stations/99999/prices/{diesel.id}", headers=attendant_headers)
        assert resp.status_code == 404

    def test_resolve_price_of_another_omc_product(
        self, client, attendant_headers, station, other_diesel
    ):
        resp = client.get(f"/api/stations/{station.id}/prices/{other_diesel.id}", headers=attendant_headers)
        assert resp.status_code == 400

    def test_manager_sets_own_station_price(self, client, manager_headers, station, gasoline):
        resp = client.put(
            f"/api/stations/{station.id}/prices/{gasoline.id}",
            json={"price": "29.10", "effective_from": "2026-01-01T00:00:00Z"},
            headers=manager_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["price"]["price"] == "29.10"

    def test_manager_cannot_price_other_station(self, client, manager_headers, other_station, other_diesel):
        resp = client.put(
            f"/api/stations/{other_station.id}/prices/{other_diesel.id}",
            json={"price": "25.00"},
            headers=manager_headers,
        )
        assert resp.status_code == 403

    def test_attendant_cannot_set_price(self, client, attendant_headers, station, gasoline):
        resp = client.put(
            f"/api/stations/{station.id}/prices/{gasoline.id}",
            json={"price": "29.10"},
            headers=attendant_headers,
        )
        assert resp.status_code == 403

    def test_bad_effective_from(self, client, admin_headers, station, gasoline):
        resp = client.put(
            f"/api/stations/{station.id}/prices/{gasoline.id}",
            json={"price": "29.10", "effective_from": "yesterday"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_admin_removes_override(self, client, admin_headers, station, diesel, diesel_override):
        url = f"/api/stations/{station.id}/prices/{diesel.id}"
        assert client.delete(url, headers=admin_headers).status_code == 200
        assert client.delete(url, headers=admin_headers).status_code == 404
