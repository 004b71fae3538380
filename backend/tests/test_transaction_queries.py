# Overview: Pytest coverage for token lookups, sales history and admin listings.

import pytest

from fuelpass.services import redemption_service, token_service, transaction_query_service
from fuelpass.time_utils import utcnow
from fuelpass.validation import NotFoundError


def _redeem(token_str, attendant, station, catalog, **kwargs):
    return redemption_service.redeem(
        token_str, attendant.id, product_catalog_id=catalog.id, station_id=station.id, **kwargs
    )


class TestTokenLookups:
    def test_token_details_expands_relations(self, token, attendant, station, diesel, diesel_override):
        _redeem("TXN-001", attendant, station, diesel)

        details = transaction_query_service.get_token_details("TXN-001")
        assert details["status"] == "USED"
        assert details["liters"] == "39.216"
        assert details["station"]["name"] == "Station A"
        assert details["product_catalog"]["name"] == "Diesel"
        assert details["pump_attendant"]["name"] == attendant.name
        assert details["driver"]["company_name"] == "Demo Haulage"

    def test_unknown_token(self, db_session):
        with pytest.raises(NotFoundError):
            transaction_query_service.get_token_details("TXN-NOPE")

    def test_search_requires_two_characters(self, token):
        assert transaction_query_service.search_tokens(None) == []
        assert transaction_query_service.search_tokens("T") == []

    def test_search_is_case_insensitive_substring(self, token, driver):
        token_service.issue_token(driver_id=driver.id, amount=100, token="TXN-002")
        token_service.issue_token(driver_id=driver.id, amount=100, token="OTHER-1")

        found = {row["token"] for row in transaction_query_service.search_tokens("txn-00")}
        assert found == {"TXN-001", "TXN-002"}

    def test_search_wildcards_are_literal(self, token, driver):
        token_service.issue_token(driver_id=driver.id, amount=100, token="TXN_50%")

        assert transaction_query_service.search_tokens("__") == []
        assert transaction_query_service.search_tokens("%%") == []
        found = {row["token"] for row in transaction_query_service.search_tokens("n_50%")}
        assert found == {"TXN_50%"}

    def test_search_is_capped(self, db_session, driver):
        for i in range(15):
            token_service.issue_token(driver_id=driver.id, amount=100, token=f"TXN-{i:03d}")

        assert len(transaction_query_service.search_tokens("TXN")) == transaction_query_service.SEARCH_LIMIT


class TestSalesHistory:
    def test_only_used_tokens_of_the_attendant(self, db_session, token, driver, attendant, station, diesel):
        token_service.issue_token(driver_id=driver.id, amount=100, token="TXN-002")
        token_service.issue_token(driver_id=driver.id, amount=200, token="TXN-003")
        _redeem("TXN-001", attendant, station, diesel)
        _redeem("TXN-002", attendant, station, diesel)

        history = transaction_query_service.get_sales_history(attendant.id)
        assert history["count"] == 2
        assert {item["token"] for item in history["items"]} == {"TXN-001", "TXN-002"}
        assert "pagination" not in history

    def test_paginated(self, db_session, driver, attendant, station, diesel):
        for i in range(5):
            token_service.issue_token(driver_id=driver.id, amount=100, token=f"TXN-{i:03d}")
            _redeem(f"TXN-{i:03d}", attendant, station, diesel)

        page = transaction_query_service.get_sales_history(attendant.id, page=2, limit=2)
        assert page["count"] == 2
        assert page["pagination"] == {
            "page": 2,
            "limit": 2,
            "total": 5,
            "total_pages": 3,
            "has_next": True,
            "has_prev": True,
        }

    def test_unknown_attendant(self, db_session, driver):
        with pytest.raises(NotFoundError):
            transaction_query_service.get_sales_history(driver.id)


class TestAdminListings:
    def test_details_include_omc_and_pump_product(
        self, token, attendant, station, diesel, dispenser, pump, omc
    ):
        record = _redeem("TXN-001", attendant, station, diesel, pump_id=pump.id, dispenser_id=dispenser.id)

        details = transaction_query_service.get_transaction_details(record.id)
        assert details["station"]["omc"] == {"id": omc.id, "name": omc.name}
        assert details["product_catalog"]["omc"]["name"] == omc.name
        assert details["pump"]["product_catalog"]["name"] == "Diesel"

    def test_details_unknown_id(self, db_session):
        with pytest.raises(NotFoundError):
            transaction_query_service.get_transaction_details(99999)

    def test_filter_by_station_and_omc(
        self, db_session, token, driver, attendant, other_attendant, station, other_station,
        diesel, other_diesel,
    ):
        token_service.issue_token(driver_id=driver.id, amount=100, token="TXN-B")
        _redeem("TXN-001", attendant, station, diesel)
        _redeem("TXN-B", other_attendant, other_station, other_diesel)

        by_station = transaction_query_service.get_filtered_transactions(station_id=station.id)
        assert [t["token"] for t in by_station["items"]] == ["TXN-001"]

        by_omc = transaction_query_service.get_filtered_transactions(omc_id=other_station.omc_id)
        assert [t["token"] for t in by_omc["items"]] == ["TXN-B"]

        # station wins over omc
        both = transaction_query_service.get_filtered_transactions(
            omc_id=other_station.omc_id, station_id=station.id,
        )
        assert [t["token"] for t in both["items"]] == ["TXN-001"]

    def test_unfiltered_includes_unused_tokens(self, db_session, token, driver):
        token_service.issue_token(driver_id=driver.id, amount=100, token="TXN-002")

        result = transaction_query_service.get_filtered_transactions()
        assert result["pagination"]["total"] == 2
        assert result["items"][0]["token"] == "TXN-002"

    def test_limit_is_capped(self, db_session, token):
        result = transaction_query_service.get_filtered_transactions(limit=1000)
        assert result["pagination"]["limit"] == transaction_query_service.MAX_PAGE_SIZE

    def test_omc_filters(self, db_session, omc, other_omc, station, other_station):
        other_omc.deleted_at = utcnow()
        db_session.commit()

        filters = transaction_query_service.get_omc_filters(omc.id)
        assert filters["omcs"] == [{"id": omc.id, "name": omc.name}]
        assert filters["stations"] == [{"id": station.id, "name": "Station A", "omc": {"name": omc.name}}]

        assert transaction_query_service.get_omc_filters()["stations"] == []
