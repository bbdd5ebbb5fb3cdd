# tests/integration/test_newsletter_router.py

from fastapi.testclient import TestClient
from faker import Faker
from sqlalchemy.orm import Session

from storefront.core.config import settings
from tests.utils.user import create_random_user, create_user_and_get_headers

fake = Faker()

NEWSLETTER_URL = f"{settings.API_V1_STR}/newsletter"


def test_subscribe_anonymous_email(client: TestClient, db: Session):
    """
    Anyone can subscribe; the address is stored in lowercase and the
    subscription starts active.
    """
    # --- Arrange ---
    email = fake.unique.email()

    # --- Act ---
    response = client.post(f"{NEWSLETTER_URL}/subscribe", json={"email": email.upper()})

    # --- Assert ---
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == email.lower()
    assert data["is_active"] is True
    assert data["user_id"] is None


def test_subscription_links_registered_user(client: TestClient, db: Session):
    user = create_random_user(db)

    response = client.post(f"{NEWSLETTER_URL}/subscribe", json={"email": user.email})

    assert response.status_code == 201
    assert response.json()["user_id"] == user.id


def test_subscribe_twice_is_rejected(client: TestClient, db: Session):
    email = fake.unique.email()
    client.post(f"{NEWSLETTER_URL}/subscribe", json={"email": email})

    response = client.post(f"{NEWSLETTER_URL}/subscribe", json={"email": email})

    assert response.status_code == 400
    assert response.json() == {"detail": "Email already subscribed"}


def test_invalid_email_is_rejected(client: TestClient, db: Session):
    assert client.post(f"{NEWSLETTER_URL}/subscribe", json={"email": "not-an-email"}).status_code == 422
    assert client.post(f"{NEWSLETTER_URL}/unsubscribe", json={"email": "not-an-email"}).status_code == 422


def test_unsubscribe(client: TestClient, db: Session):
    email = fake.unique.email()
    client.post(f"{NEWSLETTER_URL}/subscribe", json={"email": email})

    response = client.post(f"{NEWSLETTER_URL}/unsubscribe", json={"email": email})

    assert response.status_code == 204
    missing = client.post(f"{NEWSLETTER_URL}/unsubscribe", json={"email": email})
    assert missing.status_code == 404
    assert missing.json() == {"detail": "Email not found in subscribers"}


def test_admin_lists_subscribers(client: TestClient, db: Session):
    _, headers = create_user_and_get_headers(db, client, is_admin=True)
    emails = [fake.unique.email() for _ in range(3)]
    for email in emails:
        client.post(f"{NEWSLETTER_URL}/subscribe", json={"email": email})

    response = client.get(f"{NEWSLETTER_URL}/subscribers", headers=headers)
    first_two = client.get(f"{NEWSLETTER_URL}/subscribers", params={"limit": 2}, headers=headers)

    assert response.status_code == 200
    assert [s["email"] for s in response.json()] == [e.lower() for e in emails]
    assert len(first_two.json()) == 2


def test_subscriber_list_requires_admin(client: TestClient, db: Session):
    _, headers = create_user_and_get_headers(db, client)

    assert client.get(f"{NEWSLETTER_URL}/subscribers", headers=headers).status_code == 403
    assert client.get(f"{NEWSLETTER_URL}/subscribers").status_code == 401
