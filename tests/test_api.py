"""Tests for the account deletion HTTP endpoint."""

import asyncio
from datetime import date

import pytest
from fastapi.testclient import TestClient

from spendring.accounts import AccountDeletionService
from spendring.api import create_app
from spendring.config import ApiSettings
from spendring.services.storage import InMemoryAccountStorage, InMemoryExpenseStorage


@pytest.fixture
def api_settings() -> ApiSettings:
    return ApiSettings(admin_token=None, cors_allow_origins="https://app.example.com")


@pytest.fixture
def deletion_service(expense_storage, account_storage) -> AccountDeletionService:
    return AccountDeletionService(expense_storage, account_storage)


@pytest.fixture
def client(deletion_service, api_settings) -> TestClient:
    return TestClient(create_app(deletion_service, api_settings))


def delete_user(client, payload=None, **kwargs):
    return client.request("DELETE", "/api/user", json=payload, **kwargs)


class TestDeleteUser:
    def test_success(self, client, expense_storage, expense_factory):
        asyncio.run(expense_storage.create_expense(expense_factory("5", date(2024, 3, 15))))

        response = delete_user(client, {"userId": "owner-1"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "User account and all data deleted successfully"
        assert body["cleanup"] == {"expenses": 1, "budgets": 0, "categories": 0}

    @pytest.mark.parametrize(
        "payload",
        [None, {}, {"userId": ""}, {"userId": "  "}, {"userId": 42}, ["owner-1"]],
    )
    def test_missing_user_id(self, client, payload):
        response = delete_user(client, payload)
        assert response.status_code == 400
        assert response.json() == {"error": "User ID is required"}

    def test_malformed_body(self, client):
        response = client.request(
            "DELETE",
            "/api/user",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400

    def test_unknown_account(self, client):
        response = delete_user(client, {"userId": "ghost"})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Failed to delete user account"
        assert body["code"] == "not_found"
        assert "ghost" in body["details"]

    def test_storage_not_configured(self, api_settings):
        client = TestClient(create_app(None, api_settings))
        response = delete_user(client, {"userId": "owner-1"})

        assert response.status_code == 500
        assert response.json()["error"].startswith("Server configuration error")

    def test_unexpected_error(self, api_settings):
        class ExplodingAccounts(InMemoryAccountStorage):
            async def delete_account(self, owner_id):
                raise RuntimeError("kaboom")

        service = AccountDeletionService(InMemoryExpenseStorage(), ExplodingAccounts(["owner-1"]))
        client = TestClient(create_app(service, api_settings))

        response = delete_user(client, {"userId": "owner-1"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to delete user", "details": "kaboom"}


class TestAdminToken:
    @pytest.fixture
    def secured(self, deletion_service) -> TestClient:
        settings = ApiSettings(admin_token="s3cret", cors_allow_origins="*")
        return TestClient(create_app(deletion_service, settings))

    def test_missing_token(self, secured):
        response = delete_user(secured, {"userId": "owner-1"})
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_wrong_token(self, secured):
        response = delete_user(
            secured, {"userId": "owner-1"}, headers={"Authorization": "Bearer nope"},
        )
        assert response.status_code == 401

    def test_valid_token(self, secured):
        response = delete_user(
            secured, {"userId": "owner-1"}, headers={"Authorization": "Bearer s3cret"},
        )
        assert response.status_code == 200


class TestCors:
    def test_preflight_allows_delete(self, client):
        response = client.options(
            "/api/user",
            headers={
                "Origin": "https://app.example.com",
                "Access-Control-Request-Method": "DELETE",
                "Access-Control-Request-Headers": "Content-Type, Authorization",
            },
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "https://app.example.com"
        assert "DELETE" in response.headers["access-control-allow-methods"]

    def test_preflight_rejects_other_origins(self, client):
        response = client.options(
            "/api/user",
            headers={
                "Origin": "https://evil.example.com",
                "Access-Control-Request-Method": "DELETE",
            },
        )
        assert response.status_code == 400
