"""
Typed custom properties

Tiled attaches key/value properties to tiles:

    <property name="solid" type="bool" value="true"/>
    <property name="damage" type="int" value="10"/>
    <property name="description" value="A wooden door"/>   (string)
    <property name="tint" type="color" value="#ffaa0000"/>  (kept as string)

int, float and bool values are converted. Every other type (string, color,
file, object, class...) keeps the raw string, as Tiled wrote it.
"""

from typing import Mapping, Tuple, Union

PropertyValue = Union[int, float, bool, str]


def parse_property(attrib: Mapping[str, str]) -> Tuple[str, PropertyValue]:
    """
    Convert the attributes of a <property> element to (name, typed value).

    Parameters:
    -----------
    attrib : mapping
        Element attributes (name, value, optional type)

    Returns:
    --------
    tuple : (name, value) where value is int, float, bool or str

    Raises:
    -------
    KeyError : name or value attribute is missing
    ValueError : the value does not parse as its declared int/float/bool type
    """
    name = attrib["name"]
    value = attrib["value"]
    prop_type = attrib.get("type", "string")  # Default to string if not specified

    return name, convert_value(value, prop_type)


def convert_value(value: str, prop_type: str) -> PropertyValue:
    if prop_type == "int":
        return int(value)
    if prop_type == "float":
        return float(value)
    if prop_type == "bool":
        # Tiled writes "true"/"false"; older files use 1/0
        lowered = value.strip().lower()
        if lowered in ("true", "1"):
            return True
        if lowered in ("false", "0"):
            return False
        raise ValueError(f"invalid bool value: {value!r}")
    # string, color, file, object, class...
    return value
