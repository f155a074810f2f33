"""Parsing of the geometry variants inside ``<primitive>`` entries."""

from __future__ import annotations

from collections.abc import Callable

from lxscene.attributes import require_count, require_float
from lxscene.errors import SceneValueError, StructuralError
from lxscene.models import (
    PRIMITIVE_KINDS,
    CylinderPrimitive,
    PatchPrimitive,
    PlanePrimitive,
    PrimitiveSpec,
    RectanglePrimitive,
    SpherePrimitive,
    TorusPrimitive,
    TrianglePrimitive,
    Vec4,
)
from lxscene.reader import AttributeReader, DocumentNode

WarnFn = Callable[[str, str], None]


def _non_negative(v: float) -> bool:
    return v >= 0


def _positive(v: float) -> bool:
    return v > 0


def parse_primitive(
    reader: AttributeReader,
    node: DocumentNode,
    primitive_id: str,
    warn: WarnFn,
) -> PrimitiveSpec:
    """Build the typed primitive for a ``<primitive>`` node.

    Args:
        reader: Attribute accessors.
        node: The ``<primitive>`` element; it must hold exactly one geometry child.
        primitive_id: Already-validated id of the primitive.
        warn: Callback ``(code, message)`` for non-fatal diagnostics.

    Raises:
        StructuralError: If there is not exactly one known geometry child.
        SceneValueError: If any geometric constraint is violated.
    """
    if len(node.children) != 1 or node.children[0].name not in PRIMITIVE_KINDS:
        raise StructuralError(
            f"primitive {primitive_id!r} must have exactly 1 primitive type "
            f"({', '.join(sorted(PRIMITIVE_KINDS))})"
        )

    geometry = node.children[0]
    context = f"{geometry.name} primitive for ID = {primitive_id}"
    kind = geometry.name

    if kind == "rectangle":
        x1 = require_float(reader, geometry, "x1", context)
        y1 = require_float(reader, geometry, "y1", context)
        x2 = require_float(reader, geometry, "x2", context, lambda v: v > x1, "x2 > x1")
        y2 = require_float(reader, geometry, "y2", context, lambda v: v > y1, "y2 > y1")
        return RectanglePrimitive(id=primitive_id, x1=x1, y1=y1, x2=x2, y2=y2)

    if kind == "triangle":
        vertices = [
            tuple(require_float(reader, geometry, f"{axis}{i}", context) for axis in "xyz")
            for i in (1, 2, 3)
        ]
        return TrianglePrimitive(id=primitive_id, p1=vertices[0], p2=vertices[1], p3=vertices[2])

    if kind in ("cylinder", "cylinder2"):
        return CylinderPrimitive(
            kind=kind,
            id=primitive_id,
            base=require_float(reader, geometry, "base", context, _non_negative, ">= 0"),
            top=require_float(reader, geometry, "top", context, _non_negative, ">= 0"),
            height=require_float(reader, geometry, "height", context, _positive, "> 0"),
            slices=require_count(reader, geometry, "slices", context, 3),
            stacks=require_count(reader, geometry, "stacks", context, 1),
        )

    if kind == "sphere":
        return SpherePrimitive(
            id=primitive_id,
            radius=require_float(reader, geometry, "radius", context, _non_negative, ">= 0"),
            slices=require_count(reader, geometry, "slices", context, 3),
            stacks=require_count(reader, geometry, "stacks", context, 1),
        )

    if kind == "torus":
        return TorusPrimitive(
            id=primitive_id,
            inner=require_float(reader, geometry, "inner", context, _non_negative, ">= 0"),
            outer=require_float(reader, geometry, "outer", context, _non_negative, ">= 0"),
            slices=require_count(reader, geometry, "slices", context, 3),
            loops=require_count(reader, geometry, "loops", context, 1),
        )

    if kind == "plane":
        return PlanePrimitive(
            id=primitive_id,
            nparts_u=require_count(reader, geometry, "npartsU", context, 0),
            nparts_v=require_count(reader, geometry, "npartsV", context, 0),
        )

    return _parse_patch(reader, geometry, primitive_id, context, warn)


def _parse_patch(
    reader: AttributeReader,
    geometry: DocumentNode,
    primitive_id: str,
    context: str,
    warn: WarnFn,
) -> PatchPrimitive:
    npoints_u = require_count(reader, geometry, "npointsU", context, 0)
    npoints_v = require_count(reader, geometry, "npointsV", context, 0)
    nparts_u = require_count(reader, geometry, "npartsU", context, 0)
    nparts_v = require_count(reader, geometry, "npartsV", context, 0)

    points: list[Vec4] = []
    for child in geometry.children:
        if child.name != "controlpoint":
            warn(
                "W02",
                f"wrong child tag <{child.name}> for patch primitive with ID = {primitive_id}",
            )
            continue
        point_context = f"controlpoint[{len(points) + 1}] of {context}"
        points.append(
            (
                require_float(reader, child, "xx", point_context),
                require_float(reader, child, "yy", point_context),
                require_float(reader, child, "zz", point_context),
                1.0,
            )
        )

    expected = npoints_u * npoints_v
    if len(points) != expected:
        raise SceneValueError(
            f"wrong number of control points for patch primitive ID = {primitive_id}: "
            f"expected {expected} (npointsU * npointsV), got {len(points)}"
        )

    grid = [points[row * npoints_v : (row + 1) * npoints_v] for row in range(npoints_u)]
    return PatchPrimitive(
        id=primitive_id,
        npoints_u=npoints_u,
        npoints_v=npoints_v,
        nparts_u=nparts_u,
        nparts_v=nparts_v,
        control_points=grid,
    )
