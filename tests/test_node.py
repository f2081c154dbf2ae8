import pytest

from isokit.scene import Node, NodeKind, Size, Space, Vector3


@pytest.fixture
def space():
    return Space(Size(112, 64), Vector3(2, 2, 2))


def test_placeable_kinds():
    assert Node(kind=NodeKind.TILE).placeable
    assert Node(kind=NodeKind.OBJECT).placeable
    assert not Node(kind=NodeKind.LAYER).placeable
    assert not Node(kind=NodeKind.SPACE).placeable


def test_attach_is_idempotent():
    layer, tile = Node("layer"), Node(kind=NodeKind.TILE)
    assert layer.attach(tile) is True
    assert layer.attach(tile) is False
    assert layer.children == (tile,)
    assert tile.parent is layer


def test_attach_moves_node_between_parents():
    a, b, tile = Node("a"), Node("b"), Node(kind=NodeKind.TILE)
    a.attach(tile)
    b.attach(tile)
    assert a.children == ()
    assert b.children == (tile,)
    assert tile.parent is b


def test_attach_refuses_cycles():
    root, child, grandchild = Node("root"), Node("child"), Node("grandchild")
    root.attach(child)
    child.attach(grandchild)

    with pytest.raises(ValueError):
        grandchild.attach(root)
    with pytest.raises(ValueError):
        child.attach(child)
    assert grandchild.children == ()


def test_attaching_subtree_to_space_computes_everything(space):
    layer = Node("ground")
    tile = Node(kind=NodeKind.TILE, coordinates=Vector3(1, 0, 1))
    layer.attach(tile)
    assert tile.space is None
    assert tile.position == (0.0, 0.0)

    space.attach(layer)

    assert layer.space is space
    assert tile.space is space
    assert tile.position == pytest.approx(space.compute_position(Vector3(1, 0, 1)))
    assert tile.z_order == pytest.approx(5 / 6)


def test_layers_keep_their_pixel_offset(space):
    layer = Node("roof", coordinates=Vector3(0, 0, 1))
    layer.position = (10.0, -20.0)
    space.attach(layer)
    assert layer.position == (10.0, -20.0)
    assert layer.z_order == 0.0


def test_detach_clears_space(space):
    layer = Node("ground")
    tile = Node(kind=NodeKind.TILE)
    layer.attach(tile)
    space.attach(layer)

    assert space.detach(layer) is True
    assert space.detach(layer) is False
    assert layer.parent is None
    assert tile.space is None


def test_moving_a_node_refreshes_position_and_key(space):
    tile = Node(kind=NodeKind.TILE)
    space.attach(tile)

    tile.coordinates = Vector3(1, 0, 1)

    assert tile.position == pytest.approx(space.compute_position(Vector3(1, 0, 1)))
    assert tile.z_order == pytest.approx(5 / 6)


def test_anchor_sits_on_the_tile_diamond(space):
    tall = Node(kind=NodeKind.TILE, size=Size(112, 128))
    flat = Node(kind=NodeKind.TILE, size=Size(112, 64))
    space.attach(tall)
    space.attach(flat)
    assert tall.anchor == pytest.approx((0.5, 0.25))
    assert flat.anchor == pytest.approx((0.5, 0.5))


def test_world_position_accumulates_parents(space):
    layer = Node("offset")
    layer.position = (5.0, 7.0)
    tile = Node(kind=NodeKind.TILE)
    layer.attach(tile)
    space.attach(layer)
    x, y = tile.position
    assert tile.world_position == pytest.approx((x + 5, y + 7))


def test_walk_is_depth_first_in_insertion_order():
    root, a, b, a1, a2 = (Node(n) for n in ("root", "a", "b", "a1", "a2"))
    root.attach(a)
    root.attach(b)
    a.attach(a1)
    a.attach(a2)
    assert [n.name for n in root.walk()] == ["a", "a1", "a2", "b"]
    assert root.find("a2") is a2
    assert root.find("missing") is None
