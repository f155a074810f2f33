"""Compilation of a raw LXS document tree into a typed ``SceneModel``."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator
from dataclasses import dataclass, field

from pydantic import ValidationError as PydanticValidationError

from lxscene.attributes import (
    parse_color,
    parse_coordinates_3d,
    parse_coordinates_4d,
    parse_rotation_angles,
    require_child,
    require_float,
    require_string,
)
from lxscene.errors import SceneReferenceError, SceneValueError, StructuralError
from lxscene.models import (
    INHERIT_TEXTURE,
    MAX_LIGHTS,
    NO_TEXTURE,
    AnimationSpec,
    ChildRef,
    ComponentSpec,
    GlobalsSpec,
    Keyframe,
    LightSpec,
    MaterialSpec,
    NamedTexture,
    OrthoView,
    PerspectiveView,
    Rotate,
    Scale,
    SceneModel,
    TextureRef,
    TextureSpec,
    TransformOp,
    TransformSpec,
    Translate,
)
from lxscene.primitive_parser import parse_primitive
from lxscene.reader import AttributeReader, DocumentNode
from lxscene.warning_policy import SceneWarning, WarningPolicy, emit_warning

logger = logging.getLogger(__name__)

ROOT_TAG = "lxs"

BLOCK_ORDER: tuple[str, ...] = (
    "scene",
    "views",
    "globals",
    "lights",
    "textures",
    "materials",
    "transformations",
    "animations",
    "primitives",
    "components",
)

DEFAULT_AXIS_LENGTH = 1.0
DEFAULT_SHININESS = 1.0
INHERIT_MATERIAL = "inherit"


@dataclass
class CompileResult:
    model: SceneModel
    warnings: list[SceneWarning] = field(default_factory=list)


def compile_scene(
    root: DocumentNode,
    *,
    reader: AttributeReader | None = None,
    warning_policy: WarningPolicy | None = None,
) -> CompileResult:
    """Compile a document tree into a ``SceneModel``.

    Compilation stops at the first fatal error.

    Args:
        root: Root ``<lxs>`` node of the document.
        reader: Attribute accessors (a default ``AttributeReader`` if omitted).
        warning_policy: Optional suppression / escalation of warning codes.

    Returns:
        CompileResult with the compiled model and every warning emitted.

    Raises:
        StructuralError: A required block or child tag is absent.
        SceneReferenceError: Duplicate id, dangling reference, or component cycle.
        SceneValueError: A required attribute is missing or outside its domain.
    """
    compiler = SceneCompiler(reader=reader, warning_policy=warning_policy)
    model = compiler.compile(root)
    return CompileResult(model=model, warnings=compiler.warnings)


class SceneCompiler:
    """Single-use block-by-block compiler state."""

    def __init__(
        self,
        *,
        reader: AttributeReader | None = None,
        warning_policy: WarningPolicy | None = None,
    ) -> None:
        self.reader = reader or AttributeReader()
        self.warning_policy = warning_policy
        self.warnings: list[SceneWarning] = []
        self._data: dict[str, object] = {}

    def warn(self, code: str, message: str) -> None:
        emit_warning(code, message, policy=self.warning_policy, collector=self.warnings)

    def compile(self, root: DocumentNode) -> SceneModel:
        if root.name != ROOT_TAG:
            raise StructuralError(f"root tag <{ROOT_TAG}> missing")

        names = root.child_names()
        parsers = {
            "scene": self._parse_scene,
            "views": self._parse_views,
            "globals": self._parse_globals,
            "lights": self._parse_lights,
            "textures": self._parse_textures,
            "materials": self._parse_materials,
            "transformations": self._parse_transformations,
            "animations": self._parse_animations,
            "primitives": self._parse_primitives,
            "components": self._parse_components,
        }
        try:
            for expected_index, block in enumerate(BLOCK_ORDER):
                if block not in names:
                    raise StructuralError(f"tag <{block}> missing")
                index = names.index(block)
                if index != expected_index:
                    self.warn("W01", f"tag <{block}> out of order (position {index})")
                parsers[block](root.children[index])
                logger.debug("Parsed %s", block)

            self._check_root()
            self._check_acyclic()
            model = SceneModel(**self._data)
        except PydanticValidationError as e:
            raise SceneValueError(f"Schema validation failed:\n{e}") from e
        logger.debug("all parsed")
        return model

    # --- helpers ---

    def _entity_id(self, node: DocumentNode, category: str, table: dict) -> str:
        entity_id = self.reader.get_string(node, "id")
        if entity_id is None:
            raise SceneValueError(f"no ID defined for {category}")
        if entity_id in table:
            raise SceneReferenceError(f"Duplicate {category} id: {entity_id!r}")
        return entity_id

    def _expected_children(self, block: DocumentNode, tags: tuple[str, ...]) -> list[DocumentNode]:
        """Return children whose tag is in ``tags``; warn about and skip the rest."""
        accepted = []
        for child in block.children:
            if child.name not in tags:
                self.warn("W02", f"unknown tag <{child.name}> in <{block.name}>")
                continue
            accepted.append(child)
        return accepted

    def _parse_transform_op(self, node: DocumentNode, context: str) -> TransformOp | None:
        """Parse a translate/scale/rotate element; returns None for any other tag."""
        if node.name == "translate":
            x, y, z = parse_coordinates_3d(self.reader, node, f"translate {context}")
            return Translate(x=x, y=y, z=z)
        if node.name == "scale":
            x, y, z = parse_coordinates_3d(self.reader, node, f"scale {context}")
            return Scale(x=x, y=y, z=z)
        if node.name == "rotate":
            axis = self.reader.get_string(node, "axis")
            if axis not in ("x", "y", "z"):
                raise SceneValueError(f"unable to parse axis of the rotate {context}")
            angle = require_float(self.reader, node, "angle", f"rotate {context}")
            return Rotate(axis=axis, angle_deg=angle)
        return None

    # --- blocks ---

    def _parse_scene(self, node: DocumentNode) -> None:
        root_id = self.reader.get_string(node, "root")
        if root_id is None:
            raise SceneValueError("no root defined for scene")
        self._data["root"] = root_id

        axis_length = self.reader.get_float(node, "axis_length")
        if axis_length is None:
            self.warn("W03", "no axis_length defined for scene; assuming 'length = 1'")
            axis_length = DEFAULT_AXIS_LENGTH
        self._data["axis_length"] = axis_length

    def _parse_views(self, node: DocumentNode) -> None:
        views: dict[str, PerspectiveView | OrthoView] = {}
        for child in self._expected_children(node, ("perspective", "ortho")):
            view_id = self._entity_id(child, "view", views)
            context = f"view for ID = {view_id}"
            near = require_float(self.reader, child, "near", context)
            far = require_float(self.reader, child, "far", context)
            from_ = parse_coordinates_3d(
                self.reader, require_child(child, "from", context), f"from point of the {context}"
            )
            to = parse_coordinates_3d(
                self.reader, require_child(child, "to", context), f"to point of the {context}"
            )

            if child.name == "perspective":
                angle = require_float(self.reader, child, "angle", context)
                views[view_id] = PerspectiveView(
                    id=view_id,
                    angle_rad=math.radians(angle),
                    near=near,
                    far=far,
                    from_=from_,
                    to=to,
                )
                continue

            up_node = child.find("up")
            up = (
                parse_coordinates_3d(self.reader, up_node, f"up vector of the {context}")
                if up_node is not None
                else (0.0, 1.0, 0.0)
            )
            views[view_id] = OrthoView(
                id=view_id,
                left=require_float(self.reader, child, "left", context),
                right=require_float(self.reader, child, "right", context),
                bottom=require_float(self.reader, child, "bottom", context),
                top=require_float(self.reader, child, "top", context),
                near=near,
                far=far,
                from_=from_,
                to=to,
                up=up,
            )

        if not views:
            raise StructuralError("at least one view must be defined")

        default_view = self.reader.get_string(node, "default")
        if default_view is None:
            default_view = next(iter(views))
        elif default_view not in views:
            raise SceneReferenceError(f"default view {default_view!r} is not a declared view")

        self._data["views"] = views
        self._data["default_view"] = default_view

    def _parse_globals(self, node: DocumentNode) -> None:
        ambient = parse_color(
            self.reader, require_child(node, "ambient", "globals"), "ambient illumination"
        )
        background = parse_color(
            self.reader, require_child(node, "background", "globals"), "background color"
        )
        self._data["globals"] = GlobalsSpec(ambient=ambient, background=background)

    def _parse_lights(self, node: DocumentNode) -> None:
        lights: dict[str, LightSpec] = {}
        for child in self._expected_children(node, ("omni", "spot")):
            light_id = self._entity_id(child, "light", lights)
            context = f"light ID = {light_id}"

            enabled = self.reader.get_boolean(child, "enabled")
            if enabled is None:
                self.warn(
                    "W03",
                    f"unable to parse 'enabled' field for {context}; assuming 'enabled = true'",
                )
                enabled = True

            location = parse_coordinates_4d(
                self.reader, require_child(child, "location", context), f"location of {context}"
            )
            colors = {
                name: parse_color(
                    self.reader,
                    require_child(child, name, context),
                    f"{name} illumination for {context}",
                )
                for name in ("ambient", "diffuse", "specular")
            }

            spot: dict[str, object] = {}
            if child.name == "spot":
                spot["angle"] = require_float(self.reader, child, "angle", context)
                spot["exponent"] = require_float(self.reader, child, "exponent", context)
                spot["target"] = parse_coordinates_3d(
                    self.reader, require_child(child, "target", context), f"target of {context}"
                )

            lights[light_id] = LightSpec(
                id=light_id,
                kind=child.name,
                enabled=enabled,
                location=location,
                attenuation=self._parse_attenuation(child, context),
                **colors,
                **spot,
            )

        if not lights:
            raise StructuralError("at least one light must be defined")
        if len(lights) > MAX_LIGHTS:
            self.warn(
                "W04",
                f"too many lights defined ({len(lights)}); only the first {MAX_LIGHTS} are honored",
            )
        self._data["lights"] = lights

    def _parse_attenuation(self, light: DocumentNode, context: str) -> dict[str, float]:
        node = light.find("attenuation")
        if node is None:
            return {}
        terms: dict[str, float] = {}
        for term in ("constant", "linear", "quadratic"):
            value = require_float(self.reader, node, term, f"attenuation of {context}")
            if value != 0:
                terms[term] = value
        return terms

    def _parse_textures(self, node: DocumentNode) -> None:
        textures: dict[str, TextureSpec] = {}
        for child in self._expected_children(node, ("texture",)):
            texture_id = self._entity_id(child, "texture", textures)
            file = self.reader.get_string(child, "file")
            if file is None:
                self.warn("W03", f"no file defined for texture ID = {texture_id}")
            textures[texture_id] = TextureSpec(id=texture_id, file=file)

        if not textures:
            raise StructuralError("at least one texture must be defined")
        self._data["textures"] = textures

    def _parse_materials(self, node: DocumentNode) -> None:
        materials: dict[str, MaterialSpec] = {}
        for child in self._expected_children(node, ("material",)):
            material_id = self._entity_id(child, "material", materials)
            context = f"material ID = {material_id}"

            shininess = self.reader.get_float(child, "shininess")
            if shininess is None or shininess < 0:
                self.warn(
                    "W03",
                    f"unable to parse 'shininess' field for {context}; "
                    f"assuming 'shininess = {DEFAULT_SHININESS:g}'",
                )
                shininess = DEFAULT_SHININESS

            colors = {
                name: parse_color(
                    self.reader, require_child(child, name, context), f"{name} color for {context}"
                )
                for name in ("emission", "ambient", "diffuse", "specular")
            }
            materials[material_id] = MaterialSpec(id=material_id, shininess=shininess, **colors)

        if not materials:
            raise StructuralError("at least one material must be defined")
        self._data["materials"] = materials

    def _parse_transformations(self, node: DocumentNode) -> None:
        transformations: dict[str, TransformSpec] = {}
        for child in self._expected_children(node, ("transformation",)):
            transformation_id = self._entity_id(child, "transformation", transformations)
            context = f"transformation for ID = {transformation_id}"
            ops: list[TransformOp] = []
            for op_node in child.children:
                op = self._parse_transform_op(op_node, context)
                if op is None:
                    self.warn("W02", f"unknown tag <{op_node.name}> in {context}")
                    continue
                ops.append(op)
            transformations[transformation_id] = TransformSpec(id=transformation_id, ops=ops)
        self._data["transformations"] = transformations

    def _parse_animations(self, node: DocumentNode) -> None:
        animations: dict[str, AnimationSpec] = {}
        for child in self._expected_children(node, ("animation",)):
            animation_id = self._entity_id(child, "animation", animations)
            keyframes: list[Keyframe] = []
            for keyframe_node in child.children:
                if keyframe_node.name != "keyframe":
                    self.warn(
                        "W02",
                        f"unknown tag <{keyframe_node.name}> in animation ID = {animation_id}",
                    )
                    continue
                keyframe = self._parse_keyframe(keyframe_node, animation_id)
                if keyframes and keyframe.instant < keyframes[-1].instant:
                    raise SceneValueError(
                        f"keyframe instant {keyframe.instant:g} precedes the previous keyframe "
                        f"({keyframes[-1].instant:g}) in animation ID = {animation_id}"
                    )
                keyframes.append(keyframe)

            if not keyframes:
                raise StructuralError(
                    f"at least one keyframe must be defined for animation ID = {animation_id}"
                )
            animations[animation_id] = AnimationSpec(id=animation_id, keyframes=keyframes)
        self._data["animations"] = animations

    def _parse_keyframe(self, node: DocumentNode, animation_id: str) -> Keyframe:
        context = f"keyframe on animation ID = {animation_id}"
        instant = require_float(self.reader, node, "instant", context, lambda v: v >= 0, ">= 0")
        pose: dict[str, tuple[float, float, float]] = {}
        for op in node.children:
            op_context = f"{op.name} of {context}"
            if op.name in ("translate", "scale"):
                pose[op.name] = parse_coordinates_3d(self.reader, op, op_context)
            elif op.name == "rotate":
                pose["rotate"] = parse_rotation_angles(self.reader, op, op_context)
            else:
                self.warn("W02", f"unknown tag <{op.name}> in {context}")
        return Keyframe(instant=instant, **pose)

    def _parse_primitives(self, node: DocumentNode) -> None:
        primitives: dict[str, object] = {}
        for child in self._expected_children(node, ("primitive",)):
            primitive_id = self._entity_id(child, "primitive", primitives)
            primitives[primitive_id] = parse_primitive(
                self.reader, child, primitive_id, self.warn
            )
        self._data["primitives"] = primitives

    def _parse_components(self, node: DocumentNode) -> None:
        components: dict[str, ComponentSpec] = {}
        for child in self._expected_children(node, ("component",)):
            component_id = self._entity_id(child, "component", components)
            components[component_id] = self._parse_component(child, component_id)

        # Children may reference components declared later in the block.
        primitives = self._data["primitives"]
        for component in components.values():
            for ref in component.children:
                table = components if ref.kind == "component" else primitives
                if ref.id not in table:
                    raise SceneReferenceError(
                        f"component {component.id!r} references undeclared "
                        f"{ref.kind} {ref.id!r}"
                    )
        self._data["components"] = components

    def _parse_component(self, node: DocumentNode, component_id: str) -> ComponentSpec:
        context = f"component ID = {component_id}"
        known = ("transformation", "materials", "texture", "children", "animationref")
        for child in node.children:
            if child.name not in known:
                self.warn("W02", f"unknown tag <{child.name}> in {context}")

        transformation = node.find("transformation")
        transforms = (
            self._component_transforms(transformation, context)
            if transformation is not None
            else []
        )

        animation = None
        animation_node = node.find("animationref")
        if animation_node is not None:
            animation = require_string(
                self.reader, animation_node, "id", f"animationref on {context}"
            )
            if animation not in self._data["animations"]:
                raise SceneReferenceError(
                    f"{context} references undeclared animation {animation!r}"
                )

        return ComponentSpec(
            id=component_id,
            transforms=transforms,
            materials=self._component_materials(require_child(node, "materials", context), context),
            texture=self._component_texture(require_child(node, "texture", context), context),
            children=self._component_children(require_child(node, "children", context), context),
            animation=animation,
        )

    def _component_transforms(self, node: DocumentNode, context: str) -> list[TransformSpec]:
        declared = self._data["transformations"]
        transforms: list[TransformSpec] = []
        for child in node.children:
            if child.name == "transformationref":
                ref = require_string(self.reader, child, "id", f"transformationref on {context}")
                if ref not in declared:
                    raise SceneReferenceError(
                        f"{context} references undeclared transformation {ref!r}"
                    )
                transforms.append(declared[ref])
                continue
            op = self._parse_transform_op(child, f"transformation for {context}")
            if op is None:
                self.warn("W02", f"unknown tag <{child.name}> in transformation of {context}")
                continue
            transforms.append(TransformSpec(ops=[op]))
        return transforms

    def _component_materials(self, node: DocumentNode, context: str) -> list[str]:
        declared = self._data["materials"]
        materials: list[str] = []
        for child in self._expected_children(node, ("material",)):
            material_id = require_string(self.reader, child, "id", f"material on {context}")
            if material_id != INHERIT_MATERIAL and material_id not in declared:
                raise SceneReferenceError(
                    f"{context} references undeclared material {material_id!r}"
                )
            materials.append(material_id)
        if not materials:
            raise StructuralError(f"at least one material must be listed for {context}")
        return materials

    def _component_texture(self, node: DocumentNode, context: str) -> TextureRef:
        texture_id = require_string(self.reader, node, "id", f"texture on {context}")
        if texture_id == "none":
            return NO_TEXTURE
        if texture_id == "inherit":
            return INHERIT_TEXTURE
        if texture_id not in self._data["textures"]:
            raise SceneReferenceError(f"{context} references undeclared texture {texture_id!r}")
        return NamedTexture(
            id=texture_id,
            length_s=require_float(self.reader, node, "length_s", f"texture on {context}"),
            length_t=require_float(self.reader, node, "length_t", f"texture on {context}"),
        )

    def _component_children(self, node: DocumentNode, context: str) -> list[ChildRef]:
        children: list[ChildRef] = []
        for child in self._expected_children(node, ("componentref", "primitiveref")):
            ref_id = require_string(self.reader, child, "id", f"{child.name} on {context}")
            kind = "component" if child.name == "componentref" else "primitive"
            children.append(ChildRef(kind=kind, id=ref_id))
        if not children:
            raise StructuralError(f"at least one child must be listed for {context}")
        return children

    # --- whole-scene checks ---

    def _check_root(self) -> None:
        root = self._data["root"]
        if root not in self._data["components"]:
            raise SceneReferenceError(f"scene root {root!r} is not a declared component")

    def _check_acyclic(self) -> None:
        components: dict[str, ComponentSpec] = self._data["components"]
        done: set[str] = set()

        def component_children(component_id: str) -> Iterator[str]:
            return iter(
                [ref.id for ref in components[component_id].children if ref.kind == "component"]
            )

        for start in components:
            if start in done:
                continue
            path: list[str] = [start]
            on_path: set[str] = {start}
            stack: list[Iterator[str]] = [component_children(start)]
            while stack:
                child = next(stack[-1], None)
                if child is None:
                    stack.pop()
                    finished = path.pop()
                    on_path.discard(finished)
                    done.add(finished)
                    continue
                if child in on_path:
                    cycle = " -> ".join(path[path.index(child) :] + [child])
                    raise SceneReferenceError(f"Cycle detected in component graph: {cycle}")
                if child in done:
                    continue
                path.append(child)
                on_path.add(child)
                stack.append(component_children(child))
