# tests/integration/test_users_router.py

from fastapi.testclient import TestClient
from faker import Faker
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.models import UserRole
from tests.utils.user import DEFAULT_PASSWORD, create_random_user, user_authentication_headers

fake = Faker()

REGISTER_URL = f"{settings.API_V1_STR}/users/register"


def test_create_user_success(client: TestClient):
    """
    Register a new user: 201, the customer role, the default group and
    never the password or its hash in the response.
    """
    # --- Arrange ---
    user_data = {"email": fake.email(), "password": fake.password(length=12)}

    # --- Act ---
    response = client.post(REGISTER_URL, json=user_data)

    # --- Assert ---
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == user_data["email"]
    assert data["role"] == UserRole.CUSTOMER.value
    assert data["user_group"] == "regular"
    assert "id" in data
    assert "password" not in data
    assert "hashed_password" not in data


def test_create_user_email_already_exists(client: TestClient):
    user_data = {"email": fake.email(), "password": fake.password(length=12)}
    assert client.post(REGISTER_URL, json=user_data).status_code == 201

    response = client.post(REGISTER_URL, json=user_data)

    assert response.status_code == 400
    assert response.json() == {"detail": "Email already registered"}


def test_register_ignores_role_and_group_in_body(client: TestClient):
    user_data = {
        "email": fake.email(),
        "password": fake.password(length=12),
        "role": "admin",
        "user_group": "vip",
    }

    response = client.post(REGISTER_URL, json=user_data)

    assert response.status_code == 201
    assert response.json()["role"] == UserRole.CUSTOMER.value
    assert response.json()["user_group"] == "regular"


def test_register_rejects_short_password(client: TestClient):
    response = client.post(REGISTER_URL, json={"email": fake.email(), "password": "short"})

    assert response.status_code == 422


def test_login_with_wrong_password_fails(client: TestClient, db: Session):
    user = create_random_user(db)

    response = client.post(
        f"{settings.API_V1_STR}/token", data={"username": user.email, "password": "not-the-password"}
    )

    assert response.status_code == 401
    assert response.json() == {"detail": "Incorrect email or password"}


def test_read_current_user(client: TestClient, db: Session):
    user = create_random_user(db, user_group="vip")
    headers = user_authentication_headers(client=client, email=user.email, password=DEFAULT_PASSWORD)

    response = client.get(f"{settings.API_V1_STR}/users/me", headers=headers)

    assert response.status_code == 200
    assert response.json()["id"] == user.id
    assert response.json()["user_group"] == "vip"


def test_read_current_user_requires_token(client: TestClient):
    assert client.get(f"{settings.API_V1_STR}/users/me").status_code == 401
    bad = client.get(f"{settings.API_V1_STR}/users/me", headers={"Authorization": "Bearer garbage"})
    assert bad.status_code == 401
