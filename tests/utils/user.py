# tests/utils/user.py

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from faker import Faker

from storefront import crud
from storefront.core.config import settings
from storefront.models import User, UserRole
from storefront.schemas import UserCreate

fake = Faker()

DEFAULT_PASSWORD = "correct-horse-battery"


def create_random_user(
    db: Session, *, is_admin: bool = False, user_group: str = "regular", password: str = DEFAULT_PASSWORD
) -> User:
    """
    Create a user with random data through the application's CRUD layer,
    so password hashing behaves exactly as in the app.
    """
    user_in = UserCreate(
        email=fake.unique.email(),
        password=password,
        first_name=fake.first_name(),
        last_name=fake.last_name(),
        role=UserRole.ADMIN if is_admin else UserRole.CUSTOMER,
        user_group=user_group,
    )
    return crud.user.create(db=db, obj_in=user_in)


def user_authentication_headers(
    *, client: TestClient, email: str, password: str = DEFAULT_PASSWORD
) -> dict[str, str]:
    """Log in through the token endpoint and return Bearer headers."""
    data = {"username": email, "password": password}
    response = client.post(f"{settings.API_V1_STR}/token", data=data)

    if response.status_code != 200:
        raise Exception(f"Could not authenticate user {email}. Status: {response.status_code}, detail: {response.text}")

    access_token = response.json()["access_token"]
    return {"Authorization": f"Bearer {access_token}"}


def create_user_and_get_headers(
    db: Session, client: TestClient, *, is_admin: bool = False, user_group: str = "regular"
) -> tuple[User, dict[str, str]]:
    """Create a random user, log in and return the user with its auth headers."""
    user = create_random_user(db, is_admin=is_admin, user_group=user_group)
    return user, user_authentication_headers(client=client, email=user.email)
