import pytest

from dialogtree.variables import VariableStore, parse_value, to_bool, to_number


def test_store_reads_undefined_as_zero_and_false() -> None:
    store = VariableStore()

    assert store.get("missing") is None
    assert store.number("missing") == 0
    assert store.truthy("missing") is False


def test_store_set_overwrites_across_types() -> None:
    store = VariableStore()

    store.set("mood", 3)
    store.set("mood", "happy")

    assert store == {"mood": "happy"}


def test_item_and_quest_conventions() -> None:
    store = VariableStore(item_key=True, item_rope=False, quest_main="completed")

    assert store.has_item("key")
    assert not store.has_item("rope")
    assert not store.has_item("lantern")
    assert store.quest_state("main") == "completed"
    assert store.quest_state("side") is None


@pytest.mark.parametrize(
    "value, expected",
    [(None, 0), (True, 1), (False, 0), (7, 7), (2.5, 2.5), (" 12 ", 12), ("abc", 0)],
)
def test_to_number(value, expected) -> None:
    assert to_number(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [(None, False), ("no", False), ("Off", False), ("null", False), ("sure", True), (-1, True), (0.0, False)],
)
def test_to_bool(value, expected: bool) -> None:
    assert to_bool(value) is expected


def test_parse_value() -> None:
    assert parse_value("75") == 75
    assert isinstance(parse_value("75"), int)
    assert parse_value("-1.5") == -1.5
    assert parse_value("completed") == "completed"


@pytest.mark.parametrize("text", ["nan", "NaN", "inf", "-Infinity", "1_000", "1e3"])
def test_non_decimal_number_words_are_not_numbers(text: str) -> None:
    assert to_number(text) == 0
    assert parse_value(text) == text
