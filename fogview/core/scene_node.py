"""Minimal scene graph node with local and world transforms."""
from __future__ import annotations

import logging
from typing import Iterator, Protocol

import numpy as np

logger = logging.getLogger(__name__)


class TransformableNode(Protocol):
    """What NodeTransformController needs from a scene node."""

    @property
    def local_transform(self) -> np.ndarray: ...

    @local_transform.setter
    def local_transform(self, value: np.ndarray) -> None: ...

    def world_transform(self) -> np.ndarray | None:
        """Current world transform, or None for the root."""
        ...


def _validate_matrix(matrix: np.ndarray | None) -> np.ndarray:
    if matrix is None:
        return np.eye(4, dtype=np.float64)
    m = np.array(matrix, dtype=np.float64)
    if m.shape != (4, 4):
        raise ValueError(f"Transform must be a 4x4 matrix, got shape {m.shape}")
    if not np.isfinite(m).all():
        raise ValueError("Transform contains non-finite values")
    return m


class SceneNode:
    """
    Node of a scene graph.

    The root (a node without parent) anchors the scene: ``world_transform()``
    returns None for it, while its local transform still places its children.
    Every other node's world transform is its parent's world transform (the
    root's local transform for direct children) composed with its own local
    transform.
    """

    def __init__(self, name: str, local_transform: np.ndarray | None = None,
                 parent: SceneNode | None = None) -> None:
        self.name = name
        self._local = _validate_matrix(local_transform)
        self._parent: SceneNode | None = None
        self._children: list[SceneNode] = []
        if parent is not None:
            parent.add_child(self)

    @property
    def parent(self) -> SceneNode | None:
        return self._parent

    @property
    def children(self) -> tuple[SceneNode, ...]:
        return tuple(self._children)

    @property
    def is_root(self) -> bool:
        return self._parent is None

    def add_child(self, child: SceneNode) -> SceneNode:
        """Attach ``child`` (detaching it from any previous parent)."""
        node = self
        while node is not None:
            if node is child:
                raise ValueError(f"Cannot attach {child.name!r} below itself")
            node = node._parent
        if child._parent is not None:
            child._parent._children.remove(child)
        child._parent = self
        self._children.append(child)
        return child

    @property
    def local_transform(self) -> np.ndarray:
        return self._local.copy()

    @local_transform.setter
    def local_transform(self, value: np.ndarray) -> None:
        self._local = _validate_matrix(value)

    def world_transform(self) -> np.ndarray | None:
        if self._parent is None:
            return None
        return self._parent._world_or_local() @ self._local

    def _world_or_local(self) -> np.ndarray:
        world = self.world_transform()
        return self._local if world is None else world

    def iter_nodes(self) -> Iterator[SceneNode]:
        """Depth-first iteration over this node and its descendants."""
        yield self
        for child in self._children:
            yield from child.iter_nodes()

    def find(self, name: str) -> SceneNode | None:
        for node in self.iter_nodes():
            if node.name == name:
                return node
        return None

    def __repr__(self) -> str:
        return f"SceneNode({self.name!r}, children={len(self._children)})"
