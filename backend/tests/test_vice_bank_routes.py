"""
MET API — Vice Bank Route Tests
=================================

What:  End-to-end behavior of /api/vice_bank through the ASGI app: auth,
       pagination, owner scoping, ledger balances and error statuses.
"""

import pytest

from factories import deposit_json, purchase_json

BASE = "/api/vice_bank"


async def _add_user(client, headers, name="Alice", tokens=0):
    response = await client.post(
        f"{BASE}/addUser",
        json={"user": {"name": name, "currentTokens": tokens}},
        headers=headers,
    )
    assert response.status_code == 200
    return response.json()["user"]


@pytest.mark.asyncio
class TestAuth:
    async def test_missing_token_is_not_authorized(self, test_client):
        response = await test_client.get(f"{BASE}/users")
        assert response.status_code == 401
        assert response.json()["message"] == "Not Authorized"

    async def test_unknown_token_is_not_authorized(self, test_client):
        response = await test_client.get(
            f"{BASE}/users", headers={"Authorization": "Bearer nope"}
        )
        assert response.status_code == 401

    async def test_error_body_has_request_id(self, test_client):
        response = await test_client.get(
            f"{BASE}/users", headers={"X-Request-ID": "req-123"}
        )
        assert response.json() == {"message": "Not Authorized", "request_id": "req-123"}


@pytest.mark.asyncio
class TestViceBankUsers:
    async def test_add_sets_owner_and_id(self, test_client, auth_headers):
        user = await _add_user(test_client, auth_headers)
        assert user["userId"] == "user-1"
        assert user["id"]

    async def test_add_rejects_bad_fields(self, test_client, auth_headers):
        response = await test_client.post(
            f"{BASE}/addUser",
            json={"user": {"name": 5, "currentTokens": "zero"}},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid Input"

    async def test_add_rejects_non_json_body(self, test_client, auth_headers):
        response = await test_client.post(
            f"{BASE}/addUser", content=b"not json", headers=auth_headers
        )
        assert response.status_code == 400

    async def test_pagination(self, test_client, auth_headers):
        for name in ("Alice", "Bob", "Carol"):
            await _add_user(test_client, auth_headers, name)

        first = await test_client.get(
            f"{BASE}/users", params={"page": 1, "pagination": 2}, headers=auth_headers
        )
        second = await test_client.get(
            f"{BASE}/users", params={"page": 2, "pagination": 2}, headers=auth_headers
        )

        assert [u["name"] for u in first.json()["users"]] == ["Alice", "Bob"]
        assert first.json()["morePages"] is True
        assert [u["name"] for u in second.json()["users"]] == ["Carol"]
        assert second.json()["morePages"] is False

    async def test_users_are_scoped_to_caller(
        self, test_client, auth_headers, other_auth_headers
    ):
        user = await _add_user(test_client, auth_headers)

        listed = await test_client.get(f"{BASE}/users", headers=other_auth_headers)
        assert listed.json()["users"] == []

        fetched = await test_client.get(
            f"{BASE}/user/{user['id']}", headers=other_auth_headers
        )
        assert fetched.status_code == 404

        own = await test_client.get(f"{BASE}/user/{user['id']}", headers=auth_headers)
        assert own.json()["user"] == user

    async def test_update_returns_previous(self, test_client, auth_headers):
        user = await _add_user(test_client, auth_headers)

        response = await test_client.post(
            f"{BASE}/updateUser",
            json={"user": {**user, "name": "Alicia"}},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["user"]["name"] == "Alice"

    async def test_delete_returns_removed(self, test_client, auth_headers):
        user = await _add_user(test_client, auth_headers)

        response = await test_client.post(
            f"{BASE}/deleteUser",
            json={"viceBankUserId": user["id"]},
            headers=auth_headers,
        )

        assert response.json()["user"] == user

    async def test_delete_takes_vice_bank_user_id(self, test_client, auth_headers):
        user = await _add_user(test_client, auth_headers)

        response = await test_client.post(
            f"{BASE}/deleteUser", json={"userId": user["id"]}, headers=auth_headers
        )

        assert response.status_code == 400
        listed = await test_client.get(f"{BASE}/users", headers=auth_headers)
        assert [u["id"] for u in listed.json()["users"]] == [user["id"]]

    async def test_delete_missing_is_server_error(self, test_client, auth_headers):
        response = await test_client.post(
            f"{BASE}/deleteUser",
            json={"viceBankUserId": "missing"},
            headers=auth_headers,
        )
        assert response.status_code == 500
        assert response.json()["message"] == "Server Error"


@pytest.mark.asyncio
class TestActions:
    async def test_list_requires_user_id(self, test_client, auth_headers):
        response = await test_client.get(f"{BASE}/actions", headers=auth_headers)
        assert response.status_code == 400

    async def test_add_and_list(self, test_client, auth_headers):
        action = {
            "vbUserId": "vb-1",
            "name": "Run",
            "conversionUnit": "miles",
            "depositsPer": 1,
            "tokensPer": 1.5,
            "minDeposit": 1,
        }
        added = await test_client.post(
            f"{BASE}/addAction", json={"action": action}, headers=auth_headers
        )
        assert added.status_code == 200

        listed = await test_client.get(
            f"{BASE}/actions", params={"userId": "vb-1"}, headers=auth_headers
        )
        assert [a["name"] for a in listed.json()["actions"]] == ["Run"]

        other = await test_client.get(
            f"{BASE}/actions", params={"userId": "vb-2"}, headers=auth_headers
        )
        assert other.json()["actions"] == []


@pytest.mark.asyncio
class TestLedger:
    async def test_deposit_updates_balance(self, test_client, auth_headers):
        user = await _add_user(test_client, auth_headers)

        response = await test_client.post(
            f"{BASE}/addDeposit",
            json={"deposit": deposit_json(vbUserId=user["id"])},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["currentTokens"] == 3
        stored = await test_client.get(f"{BASE}/user/{user['id']}", headers=auth_headers)
        assert stored.json()["user"]["currentTokens"] == 3

    async def test_purchase_without_tokens_is_rejected(self, test_client, auth_headers):
        user = await _add_user(test_client, auth_headers, tokens=2)

        response = await test_client.post(
            f"{BASE}/addPurchase",
            json={"purchase": purchase_json(vbUserId=user["id"], tokensSpent=5)},
            headers=auth_headers,
        )

        assert response.status_code == 400
        listed = await test_client.get(
            f"{BASE}/purchases", params={"userId": user["id"]}, headers=auth_headers
        )
        assert listed.json()["purchases"] == []

    async def test_cannot_deposit_to_another_users_account(
        self, test_client, auth_headers, other_auth_headers
    ):
        user = await _add_user(test_client, auth_headers)

        response = await test_client.post(
            f"{BASE}/addDeposit",
            json={"deposit": deposit_json(vbUserId=user["id"])},
            headers=other_auth_headers,
        )

        assert response.status_code == 404

    async def test_delete_deposit_refunds(self, test_client, auth_headers):
        user = await _add_user(test_client, auth_headers)
        added = await test_client.post(
            f"{BASE}/addDeposit",
            json={"deposit": deposit_json(vbUserId=user["id"])},
            headers=auth_headers,
        )
        deposit_id = added.json()["deposit"]["id"]

        response = await test_client.post(
            f"{BASE}/deleteDeposit", json={"depositId": deposit_id}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["currentTokens"] == 0

    async def test_deposit_date_range(self, test_client, auth_headers):
        user = await _add_user(test_client, auth_headers, tokens=0)
        for day in (1, 10, 20):
            await test_client.post(
                f"{BASE}/addDeposit",
                json={"deposit": deposit_json(
                    vbUserId=user["id"], date=f"2024-01-{day:02d}T00:00:00+00:00"
                )},
                headers=auth_headers,
            )

        response = await test_client.get(
            f"{BASE}/deposits",
            params={
                "userId": user["id"],
                "startDate": "2024-01-05T00:00:00+00:00",
                "endDate": "2024-01-20T00:00:00+00:00",
            },
            headers=auth_headers,
        )

        dates = [d["date"][:10] for d in response.json()["deposits"]]
        assert dates == ["2024-01-10", "2024-01-20"]

    async def test_invalid_date_query_is_rejected(self, test_client, auth_headers):
        response = await test_client.get(
            f"{BASE}/deposits",
            params={"userId": "vb-1", "startDate": "last week"},
            headers=auth_headers,
        )
        assert response.status_code == 400
