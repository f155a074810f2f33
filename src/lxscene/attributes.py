"""Required-attribute helpers shared by the block parsers."""

from __future__ import annotations

from collections.abc import Callable

from lxscene.errors import SceneValueError, StructuralError
from lxscene.models import Color, Vec3, Vec4
from lxscene.reader import AttributeReader, DocumentNode


def require_child(node: DocumentNode, name: str, context: str) -> DocumentNode:
    """Return the first child tagged ``name`` or raise a StructuralError."""
    child = node.find(name)
    if child is None:
        raise StructuralError(f"<{name}> undefined for {context}")
    return child


def require_string(reader: AttributeReader, node: DocumentNode, attr: str, context: str) -> str:
    value = reader.get_string(node, attr)
    if value is None:
        raise SceneValueError(f"no {attr} defined for {context}")
    return value


def require_float(
    reader: AttributeReader,
    node: DocumentNode,
    attr: str,
    context: str,
    check: Callable[[float], bool] | None = None,
    constraint: str | None = None,
) -> float:
    """Read a numeric attribute, optionally enforcing a domain constraint.

    Raises:
        SceneValueError: If the attribute is missing, non-numeric, or fails ``check``.
    """
    value = reader.get_float(node, attr)
    if value is None:
        raise SceneValueError(f"unable to parse {attr} of the {context}")
    if check is not None and not check(value):
        detail = f" (expected {constraint})" if constraint else ""
        raise SceneValueError(f"invalid {attr}={value:g} of the {context}{detail}")
    return value


def require_count(
    reader: AttributeReader,
    node: DocumentNode,
    attr: str,
    context: str,
    minimum: int,
) -> int:
    """Read an integral count attribute that must be >= ``minimum``."""
    value = require_float(
        reader, node, attr, context, lambda v: v >= minimum, f">= {minimum}"
    )
    if not value.is_integer():
        raise SceneValueError(f"invalid {attr}={value:g} of the {context} (expected an integer)")
    return int(value)


def parse_coordinates_3d(reader: AttributeReader, node: DocumentNode, context: str) -> Vec3:
    return (
        require_float(reader, node, "x", context),
        require_float(reader, node, "y", context),
        require_float(reader, node, "z", context),
    )


def parse_coordinates_4d(reader: AttributeReader, node: DocumentNode, context: str) -> Vec4:
    x, y, z = parse_coordinates_3d(reader, node, context)
    return (x, y, z, require_float(reader, node, "w", context))


def parse_rotation_angles(reader: AttributeReader, node: DocumentNode, context: str) -> Vec3:
    """Read the per-axis ``angle_x``/``angle_y``/``angle_z`` degrees of a keyframe rotation."""
    return (
        require_float(reader, node, "angle_x", context),
        require_float(reader, node, "angle_y", context),
        require_float(reader, node, "angle_z", context),
    )


def parse_color(reader: AttributeReader, node: DocumentNode, context: str) -> Color:
    def in_unit_range(v: float) -> bool:
        return 0.0 <= v <= 1.0

    return (
        require_float(reader, node, "r", context, in_unit_range, "0 <= r <= 1"),
        require_float(reader, node, "g", context, in_unit_range, "0 <= g <= 1"),
        require_float(reader, node, "b", context, in_unit_range, "0 <= b <= 1"),
        require_float(reader, node, "a", context, in_unit_range, "0 <= a <= 1"),
    )
