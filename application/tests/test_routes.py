import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.promotions.engine import QuoteEngine
from app.routes.pos.quote import get_quote_engine

from conftest import NOW, FailingCatalogRepository, FakePromotionsRepository, uid


@pytest.fixture
def client(engine):
    app.dependency_overrides[get_quote_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def quote_body(code, *lines):
    return {
        "promotion_code": code,
        "lines": [
            {"line_id": uid(line_id), "product_id": uid(product_id), "qty": qty, "price_key": size, "options": {}}
            for line_id, product_id, qty, size in lines
        ],
    }


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["service"] == "pos-quote"


class TestQuoteRoute:
    def test_discount_quote(self, client):
        response = client.post("/pos/v1/quote", json=quote_body("SUMMER10", ("l1", "cake-x", 3, "STD")))

        assert response.status_code == 200
        assert response.headers["x-request-id"]
        body = response.json()
        assert body["ok"] is True
        assert body["meta"]["promotion_code"] == "SUMMER10"
        assert body["meta"]["promoType"] == "DISCOUNT"
        assert body["meta"]["percentOff"] == 10.0
        assert body["meta"]["missingPriceCount"] == 0
        assert body["totals"] == {"subtotal_before": 150000, "discount_amount": 15000, "grand_total": 135000}

        line = body["lines"][0]
        assert line["line_id"] == uid("l1")
        assert line["unit_price_after"] == 45000
        assert line["adjustments"] == [{"type": "DISCOUNT", "amount": 15000}]
        assert "promo_eligible" not in line

    def test_free_upsize_quote(self, client):
        body = client.post(
            "/pos/v1/quote",
            json=quote_body("BUY5UPSIZE", ("a", "tea", 4, "SIZE_LA"), ("b", "coffee", 2, "SIZE_LA")),
        ).json()

        assert body["meta"]["freeUpsizeApplies"] is True
        assert body["meta"]["drinkQty"] == 6
        assert body["meta"]["freeUpsizeThreshold"] == 5
        assert {line["effective_size_key"] for line in body["lines"]} == {"SIZE_PHE"}

    def test_missing_price_fields_are_null(self, client):
        body = client.post("/pos/v1/quote", json=quote_body(None, ("l1", "no-price", 1, "STD"))).json()

        line = body["lines"][0]
        assert line["missing_price"] is True
        assert line["unit_price_before"] is None
        assert line["line_total_after"] is None
        assert body["meta"]["missingPriceCount"] == 1
        assert body["totals"]["grand_total"] == 0

    def test_expired_promotion_is_a_client_error(self, client):
        response = client.post("/pos/v1/quote", json=quote_body("EXPIRED2020", ("l1", "cake-x", 1, "STD")))

        assert response.status_code == 400
        assert response.json()["ok"] is False
        assert response.json()["error_code"] == "PROMO_EXPIRED"
        assert response.json()["error"]

    @pytest.mark.parametrize("payload", [
        {"promotion_code": None, "lines": []},
        quote_body(None, ("l1", "cake-x", 0, "STD")),
        quote_body(None, ("l1", "cake-x", -2, "STD")),
        quote_body(None, ("l1", "cake-x", 1, "XL")),
        quote_body(None, ("l1", "cake-x", 1, "STD"), ("l1", "mug", 1, "STD")),
        {"promotion_code": "SUMMER10"},
    ])
    def test_malformed_requests(self, client, payload):
        response = client.post("/pos/v1/quote", json=payload)

        assert response.status_code == 400
        assert response.json()["ok"] is False
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    @pytest.mark.parametrize("line_id, product_id", [
        ("!!", uid("cake-x")),
        (uid("l1"), "cake-x"),
        ("", uid("cake-x")),
    ])
    def test_ids_must_be_uuids(self, client, line_id, product_id):
        payload = {
            "promotion_code": None,
            "lines": [{"line_id": line_id, "product_id": product_id, "qty": 1, "price_key": "STD"}],
        }

        response = client.post("/pos/v1/quote", json=payload)

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_ids_are_returned_in_canonical_form(self, client):
        payload = {
            "promotion_code": None,
            "lines": [{"line_id": uid("l1").upper(), "product_id": uid("cake-x").upper(), "qty": 1, "price_key": "STD"}],
        }

        line = client.post("/pos/v1/quote", json=payload).json()["lines"][0]

        assert line["line_id"] == uid("l1")
        assert line["product_id"] == uid("cake-x")
        assert line["unit_price_before"] == 50000

    def test_collaborator_fault_is_a_server_error(self):
        app.dependency_overrides[get_quote_engine] = lambda: QuoteEngine(
            FailingCatalogRepository(), FakePromotionsRepository(), clock=lambda: NOW
        )
        try:
            response = TestClient(app).post("/pos/v1/quote", json=quote_body(None, ("l1", "cake-x", 1, "STD")))
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json()["ok"] is False
        assert response.json()["error_code"] == "INTERNAL_ERROR"


class TestLegacyPriceRoute:
    def test_legacy_envelope(self, client):
        response = client.post("/pos/v1/price", json={
            "promotion_code": "buy5upsize",
            "lines": [
                {"product_id": uid("tea"), "size": "SIZE_LA", "qty": 5},
                {"product_id": uid("cake-x"), "qty": 1},
            ],
        })

        assert response.status_code == 200
        body = response.json()
        assert body["meta"]["promotion_code"] == "BUY5UPSIZE"
        assert body["meta"]["minQty"] == 5
        assert body["meta"]["freeUpsizeApplies"] is True
        assert body["meta"]["scopeCategories"] == []

        tea, cake = body["pricedLines"]
        assert tea["size"] == "SIZE_LA"
        assert tea["original_price_key"] == "SIZE_PHE"
        assert tea["original_unit_price"] == 35000
        assert tea["final_unit_price"] == 30000
        assert tea["discount_amount_line"] == 25000
        assert cake["size"] == "STD"
        assert cake["category"] == "CAKE"
        assert body["totals"] == {"subtotal_before_discount": 225000, "discount_amount": 25000, "grand_total": 200000}

    def test_legacy_scope_categories_are_populated(self, client):
        body = client.post("/pos/v1/price", json={
            "promotion_code": "CAKE20",
            "lines": [{"product_id": uid("cake-x"), "size": "STD", "qty": 1}],
        }).json()

        assert body["meta"]["scopeCategories"] == ["CAKE"]
        assert body["pricedLines"][0]["final_unit_price"] == 40000

    def test_legacy_product_id_must_be_uuid(self, client):
        response = client.post("/pos/v1/price", json={"lines": [{"product_id": "cake-x", "qty": 1}]})

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_legacy_invalid_promotion(self, client):
        response = client.post("/pos/v1/price", json={"promotion_code": "INACTIVE", "lines": [{"product_id": uid("cake-x"), "qty": 1}]})

        assert response.status_code == 400
        assert response.json()["error_code"] == "PROMO_INACTIVE"
