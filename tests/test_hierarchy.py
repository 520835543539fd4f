import numpy as np

from mimic.geometry import IDENTITY_QUAT, compose_matrix, quat_from_euler
from mimic.hierarchy import HierarchyComposer
from mimic.model import SceneObject


def _objects(*specs):
    return [SceneObject.from_dict(s, index=i) for i, s in enumerate(specs)]


def test_children_roots_and_order():
    composer = HierarchyComposer(_objects(
        {"id": "moon", "parent": "earth"},
        {"id": "sun"},
        {"id": "earth", "parent": "sun"},
    ))
    assert composer.roots == ["sun"]
    assert composer.children_of("sun") == ["earth"]
    assert composer.children_of("earth") == ["moon"]
    assert composer.order.index("sun") < composer.order.index("earth") < composer.order.index("moon")
    assert composer.depth_of("moon") == 2
    assert composer.get("earth").parent == "sun"


def test_dangling_parent_becomes_root():
    composer = HierarchyComposer(_objects({"id": "a", "parent": "ghost"}, {"id": "b"}))
    assert composer.roots == ["a", "b"]
    assert composer.parent_of("a") is None


def test_parent_cycle_is_broken():
    composer = HierarchyComposer(_objects(
        {"id": "a", "parent": "b"},
        {"id": "b", "parent": "a"},
        {"id": "c", "parent": "a"},
    ))
    assert sorted(composer.order) == ["a", "b", "c"]
    assert len(composer.order) == 3
    assert composer.roots == ["a"]
    assert composer.parent_of("b") == "a"
    assert composer.parent_of("c") == "a"


def test_world_is_parent_world_times_local():
    composer = HierarchyComposer(_objects(
        {"id": "root"},
        {"id": "child", "parent": "root"},
        {"id": "leaf", "parent": "child"},
    ))
    local = {
        "root": compose_matrix((1.0, 0.0, 0.0), quat_from_euler(0.0, np.pi / 2, 0.0), (2.0, 2.0, 2.0)),
        "child": compose_matrix((0.0, 0.0, 1.0), IDENTITY_QUAT, (1.0, 1.0, 1.0)),
        "leaf": compose_matrix((0.0, 1.0, 0.0), IDENTITY_QUAT, (1.0, 1.0, 1.0)),
    }
    world = composer.world_matrices(local)
    assert np.allclose(world["child"], local["root"] @ local["child"])
    assert np.allclose(world["leaf"], world["child"] @ local["leaf"])
    # +Z rotated 90 degrees about Y lands on +X, doubled by the parent scale
    assert np.allclose(world["child"][:3, 3], [3.0, 0.0, 0.0])
    assert np.allclose(world["leaf"][:3, 3], [3.0, 2.0, 0.0])


def test_moving_parent_moves_descendants_by_same_delta():
    composer = HierarchyComposer(_objects(
        {"id": "root"},
        {"id": "child", "parent": "root"},
        {"id": "leaf", "parent": "child"},
    ))
    child = compose_matrix((1.0, 2.0, 0.0), IDENTITY_QUAT, (1.0, 1.0, 1.0))
    leaf = compose_matrix((0.0, 0.0, 3.0), IDENTITY_QUAT, (1.0, 1.0, 1.0))
    before = composer.world_matrices({
        "root": compose_matrix((0.0, 0.0, 0.0), IDENTITY_QUAT, (1.0, 1.0, 1.0)),
        "child": child, "leaf": leaf,
    })
    after = composer.world_matrices({
        "root": compose_matrix((4.0, -1.0, 2.0), IDENTITY_QUAT, (1.0, 1.0, 1.0)),
        "child": child, "leaf": leaf,
    })
    for obj_id in ("child", "leaf"):
        assert np.allclose(after[obj_id][:3, 3] - before[obj_id][:3, 3], [4.0, -1.0, 2.0])


def test_missing_local_counts_as_identity():
    composer = HierarchyComposer(_objects({"id": "a"}, {"id": "b", "parent": "a"}))
    world = composer.world_matrices({"b": compose_matrix((1.0, 0.0, 0.0), IDENTITY_QUAT, (1.0, 1.0, 1.0))})
    assert np.allclose(world["a"], np.eye(4))
    assert np.allclose(world["b"][:3, 3], [1.0, 0.0, 0.0])


def test_hidden_parent_hides_subtree():
    composer = HierarchyComposer(_objects(
        {"id": "a"},
        {"id": "b", "parent": "a"},
        {"id": "c", "parent": "b"},
        {"id": "d"},
    ))
    visible = composer.effective_visibility({"a": True, "b": False, "c": True, "d": True})
    assert visible == {"a": True, "b": False, "c": False, "d": True}
