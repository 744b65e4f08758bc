"""MET API — /api/budget route tests."""

import pytest

BASE = "/api/budget"


async def _add_budget(client, headers, name="Home"):
    response = await client.post(
        f"{BASE}/addBudget",
        json={"budget": {"name": name, "currentFunds": 0}},
        headers=headers,
    )
    assert response.status_code == 200
    return response.json()["budget"]


@pytest.mark.asyncio
class TestBudgetRoutes:
    async def test_recalc_funds(self, test_client, auth_headers):
        budget = await _add_budget(test_client, auth_headers)
        for amount in (5000, 5000):
            await test_client.post(
                f"{BASE}/addDeposit",
                json={"deposit": {
                    "budgetId": budget["id"],
                    "description": "paycheck",
                    "date": "2024-01-01T00:00:00+00:00",
                    "amount": amount,
                }},
                headers=auth_headers,
            )
        await test_client.post(
            f"{BASE}/addWithdrawal",
            json={"withdrawal": {
                "budgetId": budget["id"],
                "expenseId": "e1",
                "description": "rent",
                "date": "2024-01-02T00:00:00+00:00",
                "amount": 2500,
            }},
            headers=auth_headers,
        )

        response = await test_client.post(
            f"{BASE}/recalcFunds", json={"budgetId": budget["id"]}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json() == {"funds": 7500}
        stored = await test_client.get(f"{BASE}/budget/{budget['id']}", headers=auth_headers)
        assert stored.json()["budget"]["currentFunds"] == 7500

    async def test_recalc_other_users_budget(self, test_client, auth_headers, other_auth_headers):
        budget = await _add_budget(test_client, auth_headers)
        response = await test_client.post(
            f"{BASE}/recalcFunds", json={"budgetId": budget["id"]}, headers=other_auth_headers
        )
        assert response.status_code == 404

    async def test_recalc_requires_budget_id(self, test_client, auth_headers):
        response = await test_client.post(f"{BASE}/recalcFunds", json={}, headers=auth_headers)
        assert response.status_code == 400

    async def test_categories_listed_per_budget(self, test_client, auth_headers):
        budget = await _add_budget(test_client, auth_headers)
        await test_client.post(
            f"{BASE}/addCategory",
            json={"category": {"budgetId": budget["id"], "name": "Food"}},
            headers=auth_headers,
        )

        listed = await test_client.get(
            f"{BASE}/categories", params={"budgetId": budget["id"]}, headers=auth_headers
        )
        missing_param = await test_client.get(f"{BASE}/categories", headers=auth_headers)

        assert [c["name"] for c in listed.json()["categories"]] == ["Food"]
        assert missing_param.status_code == 400
