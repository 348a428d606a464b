from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from src.chatokay.domain.models.subscription import Subscription, SubscriptionStatus
from src.chatokay.services.subscriptions.service import is_subscription_active

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _subscription(status, **fields):
    return Subscription(id=uuid4(), user_id=uuid4(), status=status, **fields)


@pytest.mark.parametrize(
    "subscription,expected",
    [
        (None, False),
        (_subscription(SubscriptionStatus.TRIAL, trial_end_date=NOW + timedelta(days=1)), True),
        (_subscription(SubscriptionStatus.TRIAL, trial_end_date=NOW - timedelta(seconds=1)), False),
        (_subscription(SubscriptionStatus.TRIAL), False),
        (_subscription(SubscriptionStatus.ACTIVE), True),
        (_subscription(SubscriptionStatus.ACTIVE, current_period_end=NOW + timedelta(days=30)), True),
        (_subscription(SubscriptionStatus.ACTIVE, current_period_end=NOW - timedelta(days=1)), False),
        (_subscription(SubscriptionStatus.PAST_DUE), False),
        (_subscription(SubscriptionStatus.CANCELED), False),
        (_subscription(SubscriptionStatus.EXPIRED), False),
    ],
)
def test_is_subscription_active(subscription, expected):
    assert is_subscription_active(subscription, now=NOW) is expected


def test_naive_timestamps_are_read_as_utc():
    naive_end = (NOW + timedelta(hours=1)).replace(tzinfo=None)
    subscription = _subscription(SubscriptionStatus.TRIAL, trial_end_date=naive_end)

    assert is_subscription_active(subscription, now=NOW)
