# posapp/utils/order_id.py
# Генерация бизнес-идентификаторов заказов

import random
import time
from typing import Callable, Protocol


class OrderIdGenerator(Protocol):
    def __call__(self) -> str: ...


class TimestampOrderIdGenerator:
    """
    ORD-<последние 6 цифр времени в мс>-<случайное 0..99>

    Коллизии возможны, уникальность гарантирует база (unique по order_id),
    а не генератор.
    """

    def __init__(
        self,
        time_ms: Callable[[], int] | None = None,
        rand: random.Random | None = None,
    ):
        self.time_ms = time_ms or (lambda: time.time_ns() // 1_000_000)
        self.rand = rand or random.Random()

    def __call__(self) -> str:
        digits = str(self.time_ms())[-6:]
        return f"ORD-{digits}-{self.rand.randint(0, 99)}"


class SequenceOrderIdGenerator:
    """Детерминированные ID (ORD-TEST-1, ORD-TEST-2, ...) для тестов и сидов."""

    def __init__(self, prefix: str = "ORD-TEST"):
        self.prefix = prefix
        self.counter = 0

    def __call__(self) -> str:
        self.counter += 1
        return f"{self.prefix}-{self.counter}"
