"""Tests for bearer tokens and the request context built from them."""
import jwt
import pytest

from stockflow.core.config import settings
from stockflow.core.security import (
    ALGORITHM,
    TokenExpiredError,
    TokenValidationError,
    create_access_token,
    decode_token,
)


class TestTokens:
    def test_round_trip_carries_actor_and_channel(self):
        payload = decode_token(create_access_token("42", channel_id=3))
        assert payload["sub"] == "42"
        assert payload["channel_id"] == 3

    def test_expired_token(self):
        token = create_access_token("42", channel_id=3, expires_minutes=-1)
        with pytest.raises(TokenExpiredError):
            decode_token(token)

    def test_wrong_secret(self):
        token = jwt.encode({"sub": "1", "channel_id": 1}, "other-secret", algorithm=ALGORITHM)
        with pytest.raises(TokenValidationError):
            decode_token(token)

    def test_missing_channel_claim(self):
        token = jwt.encode({"sub": "1"}, settings.JWT_SECRET, algorithm=ALGORITHM)
        with pytest.raises(TokenValidationError):
            decode_token(token)


class TestRequestContext:
    def test_expired_token_is_rejected(self, client):
        token = create_access_token("1", channel_id=1, expires_minutes=-5)
        resp = client.get("/inventory", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Token expired"

    def test_non_numeric_subject_is_rejected(self, client):
        token = create_access_token("someone", channel_id=1)
        resp = client.get("/inventory", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_actor_is_recorded_on_ledger(self, client, headers_for):
        headers = headers_for(channel_id=5, actor_id=55)
        category = client.post("/categories", json={"name": "C"}, headers=headers).json()
        product = client.post(
            "/products",
            json={"sku": "S", "name": "N", "categoryId": category["id"], "costPrice": 1, "sellingPrice": 1},
            headers=headers,
        ).json()

        client.post(
            "/inventory/movement",
            json={"productId": product["id"], "changeType": "IN", "quantity": 1, "reason": "r"},
            headers=headers,
        )

        logs = client.get("/inventory-log", headers=headers).json()
        assert logs[0]["actorId"] == 55
