# tests/test_order_id.py

import random
import re

from posapp.utils.order_id import SequenceOrderIdGenerator, TimestampOrderIdGenerator


def test_timestamp_generator_format():
    generator = TimestampOrderIdGenerator(time_ms=lambda: 1718000123456, rand=random.Random(7))
    order_id = generator()

    assert re.fullmatch(r"ORD-123456-\d{1,2}", order_id)
    assert 0 <= int(order_id.rsplit("-", 1)[1]) <= 99


def test_timestamp_generator_is_deterministic_with_seed():
    first = TimestampOrderIdGenerator(time_ms=lambda: 42, rand=random.Random(1))
    second = TimestampOrderIdGenerator(time_ms=lambda: 42, rand=random.Random(1))
    assert [first() for _ in range(5)] == [second() for _ in range(5)]
    assert first().startswith("ORD-42-")


def test_sequence_generator():
    generator = SequenceOrderIdGenerator(prefix="INV")
    assert [generator(), generator(), generator()] == ["INV-1", "INV-2", "INV-3"]
