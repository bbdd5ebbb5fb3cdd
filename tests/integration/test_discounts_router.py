# tests/integration/test_discounts_router.py

from datetime import timedelta

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.models import DiscountType, utcnow
from tests.utils.product import create_discount, create_random_product
from tests.utils.user import create_user_and_get_headers

DISCOUNTS_URL = f"{settings.API_V1_STR}/discounts"


def _window(start_days: int = -1, end_days: int = 7) -> dict:
    now = utcnow()
    return {
        "start_date": (now + timedelta(days=start_days)).isoformat(),
        "end_date": (now + timedelta(days=end_days)).isoformat(),
    }


def test_admin_creates_category_discount(client: TestClient, db: Session):
    """
    An admin creates a category rule; the response carries the scope
    payload and the derived `active` flag.
    """
    # --- Arrange ---
    _, headers = create_user_and_get_headers(db, client, is_admin=True)
    payload = {"name": "Shoe week", "percentage": "20", "type": "category", "categories": ["shoes"], **_window()}

    # --- Act ---
    response = client.post(f"{DISCOUNTS_URL}/", json=payload, headers=headers)

    # --- Assert ---
    assert response.status_code == 201
    data = response.json()
    assert data["type"] == "category"
    assert data["categories"] == ["shoes"]
    assert data["product_ids"] == []
    assert data["enabled"] is True
    assert data["active"] is True


def test_scheduled_discount_is_created_inactive(client: TestClient, db: Session):
    _, headers = create_user_and_get_headers(db, client, is_admin=True)
    payload = {"name": "Next month", "percentage": "10", "type": "general", **_window(30, 60)}

    response = client.post(f"{DISCOUNTS_URL}/", json=payload, headers=headers)

    assert response.status_code == 201
    assert response.json()["active"] is False


def test_discount_writes_require_an_admin(client: TestClient, db: Session):
    _, headers = create_user_and_get_headers(db, client)
    payload = {"name": "Sneaky", "percentage": "90", "type": "general", **_window()}

    assert client.post(f"{DISCOUNTS_URL}/", json=payload, headers=headers).status_code == 403
    assert client.post(f"{DISCOUNTS_URL}/", json=payload).status_code == 401


def test_invalid_discount_payloads_are_rejected(client: TestClient, db: Session):
    _, headers = create_user_and_get_headers(db, client, is_admin=True)

    reversed_window = {"name": "Backwards", "percentage": "10", "type": "general", **_window(5, 1)}
    missing_group = {"name": "VIP", "percentage": "10", "type": "userGroup", **_window()}
    too_big = {"name": "Free", "percentage": "150", "type": "general", **_window()}

    for payload in (reversed_window, missing_group, too_big):
        assert client.post(f"{DISCOUNTS_URL}/", json=payload, headers=headers).status_code == 422


def test_product_discount_with_unknown_product_is_rejected(client: TestClient, db: Session):
    _, headers = create_user_and_get_headers(db, client, is_admin=True)
    product = create_random_product(db)
    payload = {
        "name": "Ghost", "percentage": "10", "type": "product", "product_ids": [product.id, 9999], **_window()
    }

    response = client.post(f"{DISCOUNTS_URL}/", json=payload, headers=headers)

    assert response.status_code == 400
    assert response.json() == {"detail": "Unknown product ids: [9999]"}


def test_list_discounts_filters_by_active_and_type(client: TestClient, db: Session):
    running = create_discount(db, type=DiscountType.GENERAL)
    expired = create_discount(
        db, start_date=utcnow() - timedelta(days=10), end_date=utcnow() - timedelta(days=2)
    )
    disabled = create_discount(db, enabled=False)
    category = create_discount(db, type=DiscountType.CATEGORY, categories=["shoes"])

    active_ids = {d["id"] for d in client.get(f"{DISCOUNTS_URL}/", params={"active": True}).json()}
    inactive_ids = {d["id"] for d in client.get(f"{DISCOUNTS_URL}/", params={"active": False}).json()}
    category_ids = {d["id"] for d in client.get(f"{DISCOUNTS_URL}/", params={"type": "category"}).json()}

    assert active_ids == {running.id, category.id}
    assert inactive_ids == {expired.id, disabled.id}
    assert category_ids == {category.id}


def test_read_discount_by_id(client: TestClient, db: Session):
    discount = create_discount(db, percentage=15)

    response = client.get(f"{DISCOUNTS_URL}/{discount.id}")

    assert response.status_code == 200
    assert float(response.json()["percentage"]) == 15.0
    assert client.get(f"{DISCOUNTS_URL}/99999").status_code == 404


def test_product_discounts_are_listed_best_first(client: TestClient, db: Session):
    product = create_random_product(db, category="shoes")
    general = create_discount(db, type=DiscountType.GENERAL, percentage=10)
    category = create_discount(db, type=DiscountType.CATEGORY, categories=["shoes"], percentage=20)
    create_discount(db, type=DiscountType.CATEGORY, categories=["hats"], percentage=50)

    response = client.get(f"{DISCOUNTS_URL}/product/{product.id}")

    assert response.status_code == 200
    assert [d["id"] for d in response.json()] == [category.id, general.id]
    assert client.get(f"{DISCOUNTS_URL}/product/99999").status_code == 404


def test_update_recomputes_active(client: TestClient, db: Session):
    _, headers = create_user_and_get_headers(db, client, is_admin=True)
    discount = create_discount(db, percentage=10)

    switched_off = client.put(f"{DISCOUNTS_URL}/{discount.id}", json={"enabled": False}, headers=headers)
    assert switched_off.status_code == 200
    assert switched_off.json()["active"] is False

    switched_on = client.put(
        f"{DISCOUNTS_URL}/{discount.id}", json={"enabled": True, "percentage": "35"}, headers=headers
    )
    assert switched_on.json()["active"] is True
    assert float(switched_on.json()["percentage"]) == 35.0


def test_update_rejects_window_ending_before_start(client: TestClient, db: Session):
    _, headers = create_user_and_get_headers(db, client, is_admin=True)
    discount = create_discount(db)

    response = client.put(
        f"{DISCOUNTS_URL}/{discount.id}",
        json={"end_date": (utcnow() - timedelta(days=5)).isoformat()},
        headers=headers,
    )

    assert response.status_code == 400
    assert client.get(f"{DISCOUNTS_URL}/{discount.id}").json()["active"] is True


def test_delete_discount(client: TestClient, db: Session):
    _, headers = create_user_and_get_headers(db, client, is_admin=True)
    discount = create_discount(db)

    response = client.delete(f"{DISCOUNTS_URL}/{discount.id}", headers=headers)

    assert response.status_code == 204
    assert client.get(f"{DISCOUNTS_URL}/{discount.id}").status_code == 404
    assert client.delete(f"{DISCOUNTS_URL}/{discount.id}", headers=headers).status_code == 404
