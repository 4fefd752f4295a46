# tests/helpers.py

from datetime import datetime, timezone

FIXED_NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Часы, которые тест двигает вручную."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def sale_payload(order_id=None, total=100, name="Guest", **extra) -> dict:
    payload = {
        "items": [{"name": "Latte", "quantity": 1, "unit_price": total}],
        "total_amount": total,
        "customer": {"name": name},
        "table": "4",
        "payment_method": "Card",
    }
    if order_id is not None:
        payload["order_id"] = order_id
    payload.update(extra)
    return payload
