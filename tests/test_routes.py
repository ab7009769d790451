from __future__ import annotations

import httpx
import pytest

from finbalance.api import routes
from finbalance.core.config import get_settings
from finbalance.db.session import get_session
from finbalance.main import app, create_app

from .test_webhook import evolution_payload

USER = "7d0c9a55-1b9e-4a61-8d0e-5b7f3f4c2e91"
PHONE = "5531988887777"


@pytest.fixture
async def client(session_factory, settings):
    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_settings] = lambda: settings
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()


async def _create_expense(client, **overrides):
    body = {
        "user_id": USER,
        "description": "mercado",
        "amount": 300,
        "category": "Alimentação",
        "date": "2026-10-05",
    }
    body.update(overrides)
    response = await client.post("/expenses", json=body)
    assert response.status_code == 201, response.text
    return response.json()


async def test_health_and_root(client):
    assert (await client.get("/healthz")).json() == {"status": "ok"}
    root = (await client.get("/")).json()
    assert root["message"] == "finbalance up"


class TestWebhookRoute:
    async def test_test_ping(self, client):
        response = await client.post("/whatsapp/webhook", json={"test": True})
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Webhook is working!"}

    async def test_parsed_expense_is_returned(self, client):
        await client.put(f"/profiles/{USER}/phone", json={"phone_number": PHONE})

        response = await client.post("/whatsapp/webhook", json=evolution_payload("gastei 50 no mercado", PHONE))

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "parsed": {
                "type": "gasto",
                "data": {
                    "description": "mercado",
                    "amount": 50.0,
                    "category": "Alimentação",
                    "payment_method": "débito",
                },
            },
        }
        listed = (await client.get("/expenses", params={"user_id": USER})).json()
        assert listed["total"] == 1
        assert listed["items"][0]["source"] == "whatsapp"

    async def test_income_omits_expense_only_fields(self, client):
        response = await client.post("/whatsapp/webhook", json=evolution_payload("recebi 1000 de salário"))
        assert response.json()["parsed"] == {
            "type": "ganho",
            "data": {"description": "salário", "amount": 1000.0},
        }

    async def test_unknown_message(self, client):
        response = await client.post("/whatsapp/webhook", json=evolution_payload("oi, bom dia"))
        assert response.json() == {"success": True, "parsed": {"type": None, "data": None}}

    async def test_unexpected_failure_returns_500(self, client, monkeypatch):
        async def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(routes, "handle_webhook", explode)

        response = await client.post("/whatsapp/webhook", json=evolution_payload("gastei 50 no mercado"))
        assert response.status_code == 500
        assert response.json() == {"error": "boom"}

    async def test_malformed_payload_returns_500(self, client):
        response = await client.post("/whatsapp/webhook", json={"data": "not-an-object"})
        assert response.status_code == 500
        assert "error" in response.json()


class TestExpenseRoutes:
    async def test_create_defaults_to_manual_source(self, client):
        created = await _create_expense(client, description="presente")
        assert created["source"] == "manual"
        assert created["payment_method"] == "débito"
        assert created["date"] == "2026-10-05"

    async def test_create_without_category_uses_outros(self, client):
        response = await client.post(
            "/expenses", json={"user_id": USER, "description": "presente", "amount": 40}
        )
        assert response.status_code == 201
        assert response.json()["category"] == "Outros"

    async def test_rejects_non_positive_amount(self, client):
        response = await client.post("/expenses", json={"user_id": USER, "description": "x", "amount": 0})
        assert response.status_code == 422

    async def test_list_filters_by_month_and_category(self, client):
        await _create_expense(client, description="setembro", date="2026-09-30")
        await _create_expense(client, description="mercado", date="2026-10-05")
        await _create_expense(client, description="uber", amount=25.5, category="Transporte", date="2026-10-07")

        october = (await client.get("/expenses", params={"user_id": USER, "month": "2026-10"})).json()
        assert october["total"] == 2
        assert [item["description"] for item in october["items"]] == ["uber", "mercado"]
        assert october["total_amount"] == 325.5

        transport = (
            await client.get(
                "/expenses", params={"user_id": USER, "month": "2026-10", "category": "Transporte"}
            )
        ).json()
        assert [item["description"] for item in transport["items"]] == ["uber"]

    async def test_invalid_month(self, client):
        response = await client.get("/expenses", params={"user_id": USER, "month": "2026-13"})
        assert response.status_code == 400

    async def test_update_and_delete(self, client):
        created = await _create_expense(client)

        patched = await client.patch(
            f"/expenses/{created['id']}", json={"amount": 310.4, "date": "2026-10-06"}
        )
        assert patched.status_code == 200
        assert patched.json()["amount"] == 310.4
        assert patched.json()["date"] == "2026-10-06"
        assert patched.json()["description"] == "mercado"

        assert (await client.delete(f"/expenses/{created['id']}")).status_code == 204
        assert (await client.delete(f"/expenses/{created['id']}")).status_code == 404


class TestIncomeRoutes:
    async def test_crud(self, client):
        response = await client.post(
            "/incomes", json={"user_id": USER, "description": "salário", "amount": 1000, "date": "2026-10-01"}
        )
        assert response.status_code == 201
        income = response.json()
        assert income["source"] == "manual"

        listed = (await client.get("/incomes", params={"user_id": USER, "month": "2026-10"})).json()
        assert listed["total"] == 1
        assert listed["total_amount"] == 1000.0

        patched = await client.patch(f"/incomes/{income['id']}", json={"description": "salário outubro"})
        assert patched.json()["description"] == "salário outubro"

        assert (await client.delete(f"/incomes/{income['id']}")).status_code == 204
        assert (await client.patch(f"/incomes/{income['id']}", json={"amount": 5})).status_code == 404


class TestMonthlyReport:
    async def test_report_counts_card_by_category(self, client):
        await _create_expense(client, description="mercado", amount=300, date="2026-10-02")
        await _create_expense(
            client,
            description="fatura",
            amount=200,
            category="Cartão Crédito",
            payment_method="crédito",
            date="2026-10-03",
        )
        await _create_expense(
            client, description="cinema", amount=80, category="Lazer", payment_method="crédito", date="2026-10-04"
        )
        await client.post(
            "/incomes", json={"user_id": USER, "description": "salário", "amount": 1000, "date": "2026-10-01"}
        )

        report = (await client.get("/reports/monthly", params={"user_id": USER, "month": "2026-10"})).json()

        assert report["month"] == "2026-10"
        assert report["total_income"] == 1000.0
        assert report["total_expense"] == 580.0
        assert report["balance"] == 420.0
        assert report["credit_card_total"] == 200.0
        assert report["category_breakdown"] == [
            {"category": "Alimentação", "amount": 300.0},
            {"category": "Cartão Crédito", "amount": 200.0},
            {"category": "Lazer", "amount": 80.0},
        ]
        assert report["health"]["status"] == "good"
        assert report["health"]["label"] == "Saudável"

    async def test_overspending_is_critical(self, client):
        await _create_expense(client, amount=500, date="2026-10-02")
        await client.post(
            "/incomes", json={"user_id": USER, "description": "freela", "amount": 100, "date": "2026-10-01"}
        )
        report = (await client.get("/reports/monthly", params={"user_id": USER, "month": "2026-10"})).json()
        assert report["health"]["status"] == "danger"


class TestWhatsAppRoutes:
    async def test_message_history_and_stats(self, client):
        await client.put(f"/profiles/{USER}/phone", json={"phone_number": PHONE})
        for text in ["gastei 50 no mercado", "recebi 1000 de salário", "qual meu saldo?", "oi"]:
            await client.post("/whatsapp/webhook", json=evolution_payload(text, PHONE))

        history = (await client.get("/whatsapp/messages", params={"user_id": USER})).json()
        assert history["stats"] == {"total": 4, "gastos": 1, "ganhos": 1, "perguntas": 1}
        assert [item["raw_message"] for item in history["items"]][0] == "oi"

        questions = (
            await client.get("/whatsapp/messages", params={"user_id": USER, "parsed_type": "pergunta"})
        ).json()
        assert [item["raw_message"] for item in questions["items"]] == ["qual meu saldo?"]
        assert "Saldo" in questions["items"][0]["response_sent"]
        assert questions["stats"]["total"] == 4

    async def test_settings_round_trip(self, client):
        missing = await client.get("/whatsapp/settings", params={"user_id": USER})
        assert missing.status_code == 404

        body = {
            "user_id": USER,
            "evolution_api_url": "https://evolution.test",
            "evolution_api_key": "evo-secret",
            "instance_name": "finbalance",
        }
        saved = await client.put("/whatsapp/settings", json=body)
        assert saved.status_code == 200

        updated = await client.put("/whatsapp/settings", json={**body, "instance_name": "outra"})
        assert updated.json()["instance_name"] == "outra"

        fetched = (await client.get("/whatsapp/settings", params={"user_id": USER})).json()
        assert fetched["evolution_api_url"] == "https://evolution.test"
        assert fetched["instance_name"] == "outra"

    async def test_phone_link_validation(self, client):
        response = await client.put(f"/profiles/{USER}/phone", json={"phone_number": "123"})
        assert response.status_code == 422

        linked = await client.put(f"/profiles/{USER}/phone", json={"phone_number": PHONE})
        assert linked.json() == {"user_id": USER, "full_name": None, "phone_number": PHONE}


class TestSearch:
    async def test_expenses_match_description_case_insensitively(self, client):
        await _create_expense(client, description="Mercado Livre")
        await _create_expense(client, description="uber")

        found = (await client.get("/expenses", params={"user_id": USER, "q": "MERCADO"})).json()

        assert [item["description"] for item in found["items"]] == ["Mercado Livre"]
        assert found["total_amount"] == 300.0

    async def test_incomes_match_description(self, client):
        for description in ["Salário outubro", "freela"]:
            await client.post(
                "/incomes", json={"user_id": USER, "description": description, "amount": 100}
            )

        found = (await client.get("/incomes", params={"user_id": USER, "q": "salário"})).json()
        assert [item["description"] for item in found["items"]] == ["Salário outubro"]

    async def test_messages_match_text_or_phone(self, client):
        await client.put(f"/profiles/{USER}/phone", json={"phone_number": PHONE})
        for text_message in ["Gastei 50 no mercado", "oi"]:
            await client.post("/whatsapp/webhook", json=evolution_payload(text_message, PHONE))

        by_text = (await client.get("/whatsapp/messages", params={"user_id": USER, "q": "MERCADO"})).json()
        assert [item["raw_message"] for item in by_text["items"]] == ["Gastei 50 no mercado"]
        assert by_text["stats"]["total"] == 2

        by_phone = (await client.get("/whatsapp/messages", params={"user_id": USER, "q": "988887"})).json()
        assert len(by_phone["items"]) == 2

        nothing = (await client.get("/whatsapp/messages", params={"user_id": USER, "q": "netflix"})).json()
        assert nothing["items"] == []


class TestRecentTransactions:
    async def test_feed_merges_both_ledgers(self, client):
        await _create_expense(client, description="mercado", date="2026-10-05")
        await _create_expense(client, description="uber", amount=25.5, category="Transporte", date="2026-10-07")
        await client.post(
            "/incomes", json={"user_id": USER, "description": "salário", "amount": 1000, "date": "2026-10-06"}
        )

        feed = (await client.get("/transactions/recent", params={"user_id": USER})).json()

        assert [(item["type"], item["description"], item["date"]) for item in feed] == [
            ("expense", "uber", "2026-10-07"),
            ("income", "salário", "2026-10-06"),
            ("expense", "mercado", "2026-10-05"),
        ]
        assert feed[0]["category"] == "Transporte"
        assert feed[1]["category"] is None

    async def test_feed_is_capped(self, client):
        for day in range(1, 8):
            await _create_expense(client, description=f"dia {day}", date=f"2026-10-{day:02d}")

        default = (await client.get("/transactions/recent", params={"user_id": USER})).json()
        assert [item["description"] for item in default] == ["dia 7", "dia 6", "dia 5", "dia 4", "dia 3"]

        two = (await client.get("/transactions/recent", params={"user_id": USER, "limit": 2})).json()
        assert len(two) == 2


async def test_truthy_test_flag_is_acknowledged(client):
    response = await client.post("/whatsapp/webhook", json={"test": "yes"})
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Webhook is working!"}


async def test_app_factory_uses_given_settings(settings):
    application = create_app(settings.model_copy(update={"app_name": "finbalance-staging"}))
    assert application.title == "finbalance-staging"

    transport = httpx.ASGITransport(app=application)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        root = (await client.get("/")).json()
    assert root["message"] == "finbalance-staging up"
