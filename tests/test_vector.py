import math

import pytest

from isokit.scene.vector import Vector3


def test_vectors_compare_and_hash_by_component():
    assert Vector3(1, 2, 3) == Vector3(1.0, 2.0, 3.0)
    assert len({Vector3(1, 2, 3), Vector3(1, 2, 3), Vector3(3, 2, 1)}) == 2


def test_vector_is_immutable():
    v = Vector3(1, 2, 3)
    with pytest.raises(AttributeError):
        v.x = 5


def test_with_z_builds_new_value():
    v = Vector3(1, 1, 0)
    assert v.with_z(4) == Vector3(1, 1, 4)
    assert v == Vector3(1, 1, 0)


def test_dictionary_representation():
    v = Vector3(1.5, -2, 3)
    assert v.to_dict() == {"x": 1.5, "y": -2, "z": 3}
    assert Vector3.from_dict(v.to_dict()) == v


@pytest.mark.parametrize("data", [
    None,
    {},
    {"x": 1, "y": 2},
    {"x": 1, "y": "2", "z": 3},
    {"x": True, "y": 2, "z": 3},
    {"x": math.inf, "y": 2, "z": 3},
    {"x": 1, "y": math.nan, "z": 3},
])
def test_from_dict_rejects_incomplete_or_non_numeric(data):
    assert Vector3.from_dict(data) is None

