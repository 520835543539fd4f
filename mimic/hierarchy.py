# mimic/hierarchy.py
"""
Parent/child structure of a scene graph.

Built once per adopted SceneGraph: an id index, each object's direct children, the
roots, and a parents-before-children traversal order used to compose local
transforms into world transforms (world = parent_world @ local).

A parent reference to a missing id makes the object a root. Objects caught in a
parent cycle are never reachable from a root; the first of them (in array order)
is promoted to root so every object is placed exactly once.
"""
import logging
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np

from .model import SceneObject

logger = logging.getLogger(__name__)


class HierarchyComposer:
    def __init__(self, objects: Sequence[SceneObject]):
        self.index: Dict[str, SceneObject] = {}
        for obj in objects:
            self.index.setdefault(obj.id, obj)

        self._parent: Dict[str, Optional[str]] = {}
        self.children: Dict[str, List[str]] = {obj_id: [] for obj_id in self.index}
        self.roots: List[str] = []

        for obj_id, obj in self.index.items():
            parent = obj.parent
            if parent is not None and parent not in self.index:
                logger.warning("object %r has unknown parent %r; treating it as a root", obj_id, parent)
                parent = None
            self._parent[obj_id] = parent
            if parent is None:
                self.roots.append(obj_id)
            else:
                self.children[parent].append(obj_id)

        self.order: List[str] = []
        visited = set()
        self._walk(self.roots, visited)
        for obj_id in self.index:
            if obj_id in visited:
                continue
            logger.warning("object %r is part of a parent cycle; promoting it to a root", obj_id)
            old_parent = self._parent[obj_id]
            if old_parent is not None:
                self.children[old_parent].remove(obj_id)
            self._parent[obj_id] = None
            self.roots.append(obj_id)
            self._walk([obj_id], visited)

    def _walk(self, start: Sequence[str], visited: set) -> None:
        stack = list(reversed(start))
        while stack:
            obj_id = stack.pop()
            if obj_id in visited:
                continue
            visited.add(obj_id)
            self.order.append(obj_id)
            stack.extend(reversed(self.children[obj_id]))

    def get(self, obj_id: str) -> Optional[SceneObject]:
        return self.index.get(obj_id)

    def parent_of(self, obj_id: str) -> Optional[str]:
        return self._parent.get(obj_id)

    def children_of(self, obj_id: str) -> List[str]:
        return list(self.children.get(obj_id, ()))

    def depth_of(self, obj_id: str) -> int:
        depth = 0
        parent = self._parent.get(obj_id)
        while parent is not None:
            depth += 1
            parent = self._parent.get(parent)
        return depth

    def world_matrices(self, local: Mapping[str, np.ndarray]) -> Dict[str, np.ndarray]:
        """Compose per-object local 4x4 matrices down the tree. Missing locals count as identity."""
        world: Dict[str, np.ndarray] = {}
        for obj_id in self.order:
            matrix = local.get(obj_id)
            if matrix is None:
                matrix = np.eye(4)
            parent = self._parent[obj_id]
            world[obj_id] = matrix if parent is None else world[parent] @ matrix
        return world

    def effective_visibility(self, visible: Mapping[str, bool]) -> Dict[str, bool]:
        """An object is drawn only when it and every ancestor are visible."""
        result: Dict[str, bool] = {}
        for obj_id in self.order:
            own = bool(visible.get(obj_id, True))
            parent = self._parent[obj_id]
            result[obj_id] = own and (parent is None or result[parent])
        return result
