import pytest

from isokit.map.properties import convert_value, parse_property


@pytest.mark.parametrize("attrib, expected", [
    ({"name": "label", "value": "door"}, ("label", "door")),
    ({"name": "label", "type": "string", "value": "door"}, ("label", "door")),
    ({"name": "hp", "type": "int", "value": "10"}, ("hp", 10)),
    ({"name": "speed", "type": "float", "value": "1.5"}, ("speed", 1.5)),
    ({"name": "solid", "type": "bool", "value": "true"}, ("solid", True)),
    ({"name": "solid", "type": "bool", "value": "0"}, ("solid", False)),
])
def test_parse_property(attrib, expected):
    assert parse_property(attrib) == expected


def test_missing_attributes_raise_key_error():
    with pytest.raises(KeyError):
        parse_property({"value": "1"})
    with pytest.raises(KeyError):
        parse_property({"name": "a"})


@pytest.mark.parametrize("value, prop_type", [
    ("ten", "int"),
    ("fast", "float"),
    ("yes", "bool"),
])
def test_bad_values_raise_value_error(value, prop_type):
    with pytest.raises(ValueError):
        convert_value(value, prop_type)


@pytest.mark.parametrize("value, prop_type", [
    ("#ff00aa00", "color"),
    ("../sounds/door.ogg", "file"),
    ("12", "object"),
    ("anything", "some-future-type"),
])
def test_other_types_keep_the_raw_string(value, prop_type):
    assert convert_value(value, prop_type) == value
    assert parse_property({"name": "p", "type": prop_type, "value": value}) == ("p", value)
