from datetime import timedelta
from unittest.mock import patch

import pytest
import stripe

from app.core import config
from app.core.errors import ConfigurationError, InvalidRequest
from app.core.plans import PRICE_TIERS, get_tier_for_price
from app.models.subscriber import Subscriber
from app.services import subscription
from app.utils.timestamps import utcnow
from tests.conftest import USER_ID

STARTER_PRICE = next(price for price, tier in PRICE_TIERS.items() if tier == "Starter")


@pytest.fixture(autouse=True)
def stripe_key(monkeypatch):
    monkeypatch.setattr(config, "STRIPE_SECRET_KEY", "sk_test_123")


def _list(*items):
    return stripe.ListObject.construct_from({"object": "list", "url": "/v1/list", "data": list(items)}, "sk_test_123")


def _customer(customer_id="cus_1"):
    return {"id": customer_id, "object": "customer", "email": "user@example.com"}


def _session(session_id):
    return stripe.checkout.Session.construct_from(
        {"id": session_id, "object": "checkout.session", "url": f"https://checkout.stripe.com/c/{session_id}"},
        "sk_test_123",
    )


def _active_subscription(price_id=STARTER_PRICE, period_end=1893456000):
    return {
        "id": "sub_1",
        "object": "subscription",
        "status": "active",
        "customer": "cus_1",
        "current_period_end": period_end,
        "items": {"object": "list", "data": [{"id": "si_1", "object": "subscription_item", "price": {"id": price_id, "object": "price"}}]},
    }


def test_unknown_price_has_no_tier() -> None:
    assert get_tier_for_price("price_unknown") is None
    assert get_tier_for_price(None) is None


def test_no_customer_marks_unsubscribed(client, db_session, user_headers) -> None:
    with patch.object(stripe.Customer, "list", return_value=_list()):
        response = client.post("/functions/check-subscription", headers=user_headers)

    assert response.status_code == 200
    assert response.json()["subscribed"] is False
    row = db_session.query(Subscriber).one()
    assert row.email == "user@example.com"
    assert row.user_id == USER_ID
    assert row.stripe_customer_id is None


def test_active_subscription_sets_tier_and_end(client, db_session, user_headers) -> None:
    with patch.object(stripe.Customer, "list", return_value=_list(_customer())), \
            patch.object(stripe.Subscription, "list", return_value=_list(_active_subscription())):
        response = client.post("/functions/check-subscription", headers=user_headers)

    body = response.json()
    assert body["subscribed"] is True
    assert body["subscription_tier"] == "Starter"
    assert body["subscription_end"] == "2030-01-01T00:00:00Z"
    assert db_session.query(Subscriber).one().stripe_customer_id == "cus_1"


def test_fresh_cache_skips_stripe(db_session) -> None:
    db_session.add(Subscriber(email="user@example.com", user_id=USER_ID, subscribed=True, subscription_tier="Enterprise"))
    db_session.commit()

    with patch.object(stripe.Customer, "list") as customer_list:
        result = subscription.check_subscription(db_session, USER_ID, "user@example.com")

    customer_list.assert_not_called()
    assert result["subscription_tier"] == "Enterprise"


def test_stale_cache_is_refreshed(db_session) -> None:
    row = Subscriber(email="user@example.com", user_id=USER_ID, subscribed=True, subscription_tier="Enterprise")
    db_session.add(row)
    db_session.commit()
    row.updated_at = utcnow() - timedelta(hours=2)
    db_session.commit()

    with patch.object(stripe.Customer, "list", return_value=_list()) as customer_list:
        result = subscription.check_subscription(db_session, USER_ID, "user@example.com")

    customer_list.assert_called_once()
    assert result["subscribed"] is False
    assert result["subscription_tier"] is None


def test_missing_stripe_key_is_configuration_error(db_session, monkeypatch) -> None:
    monkeypatch.setattr(config, "STRIPE_SECRET_KEY", "")

    with pytest.raises(ConfigurationError):
        subscription.check_subscription(db_session, USER_ID, "user@example.com")


def test_checkout_requires_price(client, user_headers) -> None:
    response = client.post("/functions/create-checkout", json={}, headers=user_headers)

    assert response.status_code == 400
    assert response.json() == {"error": "Price ID is required"}


def test_checkout_reuses_existing_customer(client, user_headers) -> None:
    session = _session("cs_1")
    with patch.object(stripe.Customer, "list", return_value=_list(_customer())), \
            patch.object(stripe.checkout.Session, "create", return_value=session) as create:
        response = client.post(
            "/functions/create-checkout",
            json={"priceId": STARTER_PRICE},
            headers={**user_headers, "origin": "https://app.talkigen.com"},
        )

    assert response.json() == {"url": session.url}
    params = create.call_args.kwargs
    assert params["customer"] == "cus_1"
    assert "customer_email" not in params
    assert params["mode"] == "subscription"
    assert params["success_url"] == "https://app.talkigen.com/onboarding?success=true"


def test_checkout_for_new_customer_passes_email() -> None:
    session = _session("cs_2")
    with patch.object(stripe.Customer, "list", return_value=_list()), \
            patch.object(stripe.checkout.Session, "create", return_value=session) as create:
        url = subscription.create_checkout_session("new@example.com", STARTER_PRICE, "https://app.talkigen.com")

    assert url == session.url
    assert create.call_args.kwargs["customer_email"] == "new@example.com"


def test_checkout_rejects_empty_price() -> None:
    with pytest.raises(InvalidRequest):
        subscription.create_checkout_session("new@example.com", "", "https://app.talkigen.com")
