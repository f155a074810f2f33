"""Scene graph linking and per-frame traversal."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Union

import numpy as np

from lxscene.adapter import RenderAdapter
from lxscene.animation import Animation, create_animation
from lxscene.compiler import INHERIT_MATERIAL
from lxscene.errors import SceneReferenceError
from lxscene.models import ComponentSpec, NamedTexture, NoTexture, PrimitiveSpec, SceneModel

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class PrimitiveNode:
    spec: PrimitiveSpec

    @property
    def id(self) -> str:
        return self.spec.id

    def display(
        self,
        adapter: RenderAdapter,
        material_id: str | None,
        texture: NamedTexture | None,
    ) -> None:
        adapter.draw(self.id, material_id, texture)


@dataclass(eq=False)
class ComponentNode:
    """A linked component: static matrix, material stack, texture and children."""

    spec: ComponentSpec
    matrix: np.ndarray
    material_index: int = 0
    animation: Animation | None = None
    children: list[SceneGraphNode] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.spec.id

    def set_material_index(self, index: int) -> None:
        if not 0 <= index < len(self.spec.materials):
            raise IndexError(
                f"material index {index} out of range for component {self.id!r} "
                f"({len(self.spec.materials)} materials)"
            )
        self.material_index = index

    def advance_material(self) -> None:
        self.material_index = (self.material_index + 1) % len(self.spec.materials)

    def active_material(self, parent_material: str | None) -> str | None:
        material_id = self.spec.materials[self.material_index]
        if material_id == INHERIT_MATERIAL:
            return parent_material
        return material_id

    def resolve_texture(self, parent_texture: NamedTexture | None) -> NamedTexture | None:
        texture = self.spec.texture
        if isinstance(texture, NamedTexture):
            return texture
        if isinstance(texture, NoTexture):
            return None
        return parent_texture

    def display(
        self,
        adapter: RenderAdapter,
        parent_material: str | None = None,
        parent_texture: NamedTexture | None = None,
    ) -> None:
        material_id = self.active_material(parent_material)
        texture = self.resolve_texture(parent_texture)

        adapter.push_matrix()
        try:
            adapter.mult_matrix(self.matrix)
            if self.animation is not None:
                self.animation.apply(adapter)
            for child in self.children:
                child.display(adapter, material_id, texture)
        finally:
            adapter.pop_matrix()


SceneGraphNode = Union[ComponentNode, PrimitiveNode]


@dataclass(eq=False)
class SceneGraph:
    """Navigable DAG of linked nodes; a node may have several parents."""

    model: SceneModel
    components: dict[str, ComponentNode]
    primitives: dict[str, PrimitiveNode]
    root: ComponentNode

    def node(self, node_id: str) -> SceneGraphNode:
        if node_id in self.components:
            return self.components[node_id]
        return self.primitives[node_id]

    def animated_components(self) -> list[ComponentNode]:
        return [node for node in self.components.values() if node.animation is not None]

    def update(self, delta: float) -> None:
        """Advance every animation instance by ``delta`` seconds."""
        for node in self.animated_components():
            node.animation.update(delta)

    def display(self, adapter: RenderAdapter) -> None:
        self.root.display(adapter)

    def tick(self, delta: float, adapter: RenderAdapter) -> None:
        """One frame: update animations, then display from the root."""
        self.update(delta)
        self.display(adapter)

    def advance_materials(self) -> None:
        """Move every component's material stack to its next entry."""
        for node in self.components.values():
            node.advance_material()


def link(model: SceneModel) -> SceneGraph:
    """Resolve a compiled model into a scene graph.

    Pass 1 creates one node per component and per primitive; pass 2 replaces
    child ids with node references and binds a fresh animation state to every
    component that references an animation.

    Raises:
        SceneReferenceError: If the root, a child, or an animation does not resolve.
    """
    components = {
        component_id: ComponentNode(
            spec=spec, matrix=spec.matrix(), material_index=spec.material_index
        )
        for component_id, spec in model.components.items()
    }
    primitives = {
        primitive_id: PrimitiveNode(spec=spec) for primitive_id, spec in model.primitives.items()
    }

    for node in components.values():
        for ref in node.spec.children:
            table = components if ref.kind == "component" else primitives
            child = table.get(ref.id)
            if child is None:
                raise SceneReferenceError(
                    f"component {node.id!r} references undeclared {ref.kind} {ref.id!r}"
                )
            node.children.append(child)

        if node.spec.animation is not None:
            spec = model.animations.get(node.spec.animation)
            if spec is None:
                raise SceneReferenceError(
                    f"component {node.id!r} references undeclared animation "
                    f"{node.spec.animation!r}"
                )
            node.animation = create_animation(spec)

    root = components.get(model.root)
    if root is None:
        raise SceneReferenceError(f"scene root {model.root!r} is not a declared component")

    logger.debug("Linked %d components, %d primitives", len(components), len(primitives))
    return SceneGraph(model=model, components=components, primitives=primitives, root=root)
