"""
Интеграционные тесты эндпоинтов /api/v1/auth/*.

Покрываемые сценарии:
- POST /auth/login: успех, неверный пароль, несуществующий сотрудник, невалидный email
- POST /auth/refresh: успешная ротация, невалидный токен, обнаружение повторного использования
- POST /auth/logout: успешный выход
- GET /auth/me: успех с валидным токеном, отказ без токена

Стратегия: UserRepository заменяется на AsyncMock через conftest.client.
"""

import pytest
from datetime import datetime, timedelta

from mealops.models.user import StaffUser, RoleEnum
from mealops.services.auth_service import auth_service
from tests.conftest import make_auth_headers

pytestmark = pytest.mark.integration


# ---------------------------------------------------------------------------
# POST /auth/login
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_login_valid_credentials_returns_tokens_and_role(client, mock_repo, ops_fixture):
    mock_repo.get_by_email.return_value = ops_fixture

    response = await client.post("/api/v1/auth/login", json={
        "email": "ops@example.com",
        "password": "password123",
    })

    assert response.status_code == 200
    data = response.json()
    assert "access_token" in data
    assert "refresh_token" in data
    assert data["token_type"] == "bearer"
    assert data["role"] == "ops"
    mock_repo.save_refresh_token.assert_called_once()


@pytest.mark.asyncio
async def test_login_wrong_password_returns_401(client, mock_repo, ops_fixture):
    mock_repo.get_by_email.return_value = ops_fixture

    response = await client.post("/api/v1/auth/login", json={
        "email": "ops@example.com",
        "password": "wrong_password",
    })

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_unknown_user_returns_401(client, mock_repo):
    mock_repo.get_by_email.return_value = None

    response = await client.post("/api/v1/auth/login", json={
        "email": "ghost@example.com",
        "password": "any",
    })

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_invalid_email_format_returns_422(client, mock_repo):
    response = await client.post("/api/v1/auth/login", json={"email": "not-an-email", "password": "x"})
    assert response.status_code == 422


# ---------------------------------------------------------------------------
# POST /auth/refresh
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_refresh_valid_token_returns_new_pair(client, mock_repo, ops_fixture):
    refresh_token = auth_service.create_refresh_token(data={"sub": str(ops_fixture.id)})
    ops_fixture.refresh_token = refresh_token
    ops_fixture.refresh_token_expires = datetime.utcnow() + timedelta(days=1)
    mock_repo.get_by_refresh_token.return_value = ops_fixture

    response = await client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})

    assert response.status_code == 200
    assert response.json()["refresh_token"] != refresh_token


@pytest.mark.asyncio
async def test_refresh_invalid_token_returns_401(client, mock_repo):
    response = await client.post("/api/v1/auth/refresh", json={"refresh_token": "garbage"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_refresh_reused_token_revokes_and_returns_401(client, mock_repo, ops_fixture):
    """Повторное использование уже ротированного токена аннулирует сессию."""
    old_token = auth_service.create_refresh_token(data={"sub": str(ops_fixture.id)})
    mock_repo.get_by_refresh_token.return_value = None
    mock_repo.get_by_id.return_value = ops_fixture

    response = await client.post("/api/v1/auth/refresh", json={"refresh_token": old_token})

    assert response.status_code == 401
    mock_repo.revoke_refresh_token.assert_called_once_with(ops_fixture)


# ---------------------------------------------------------------------------
# POST /auth/logout
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_logout_returns_204_and_revokes(client, mock_repo, ops_fixture):
    token = auth_service.create_refresh_token(data={"sub": str(ops_fixture.id)})
    mock_repo.get_by_id.return_value = ops_fixture

    response = await client.post("/api/v1/auth/logout", json={"refresh_token": token})

    assert response.status_code == 204
    mock_repo.revoke_refresh_token.assert_called_once_with(ops_fixture)


@pytest.mark.asyncio
async def test_logout_with_invalid_token_still_returns_204(client, mock_repo):
    response = await client.post("/api/v1/auth/logout", json={"refresh_token": "garbage"})
    assert response.status_code == 204
    mock_repo.revoke_refresh_token.assert_not_called()


# ---------------------------------------------------------------------------
# GET /auth/me
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_me_with_valid_token_returns_staff_user(client, mock_repo, admin_fixture):
    mock_repo.get_by_id.return_value = admin_fixture

    response = await client.get("/api/v1/auth/me", headers=make_auth_headers(admin_fixture))

    assert response.status_code == 200
    data = response.json()
    assert data["email"] == "admin@example.com"
    assert data["role"] == "admin"
    assert "password" not in data


@pytest.mark.asyncio
async def test_me_without_token_is_rejected(client):
    response = await client.get("/api/v1/auth/me")
    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_me_with_deleted_user_returns_401(client, mock_repo):
    ghost = StaffUser(id=99, email="ghost@example.com", password="h", role=RoleEnum.ops)
    mock_repo.get_by_id.return_value = None

    response = await client.get("/api/v1/auth/me", headers=make_auth_headers(ghost))
    assert response.status_code == 401
