import pytest

from prefstore.errors import InvalidValue
from prefstore.values import INT64_MAX, INT64_MIN, ValueKind, coerce, is_typed_value, kind_of


def test_kind_of_each_kind():
    assert kind_of("a") is ValueKind.TEXT
    assert kind_of(3) is ValueKind.INTEGER
    assert kind_of(3.5) is ValueKind.FLOAT
    assert kind_of(True) is ValueKind.BOOLEAN


def test_bool_is_not_integer():
    assert kind_of(False) is ValueKind.BOOLEAN
    assert kind_of(0) is ValueKind.INTEGER


def test_integer_range_is_64_bit():
    assert kind_of(INT64_MAX) is ValueKind.INTEGER
    assert kind_of(INT64_MIN) is ValueKind.INTEGER
    with pytest.raises(InvalidValue):
        kind_of(INT64_MAX + 1)


@pytest.mark.parametrize("value", [None, [1], {"a": 1}, b"x", object()])
def test_unsupported_values(value):
    assert is_typed_value(value) is False
    with pytest.raises(InvalidValue):
        kind_of(value)


def test_coerce_widens_integral_float():
    assert coerce(ValueKind.FLOAT, 2) == 2.0
    assert isinstance(coerce(ValueKind.FLOAT, 2), float)
    assert coerce(ValueKind.TEXT, "x") == "x"
    with pytest.raises(InvalidValue):
        coerce(ValueKind.INTEGER, "5")
    with pytest.raises(InvalidValue):
        coerce(ValueKind.INTEGER, True)
