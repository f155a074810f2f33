"""Inspection diagnostics for compiled scenes."""

from __future__ import annotations

from io import StringIO

from ruamel.yaml import YAML

from lxscene.adapter import MatrixStackAdapter
from lxscene.graph import SceneGraph
from lxscene.models import SceneModel

_CATEGORY_ORDER: tuple[str, ...] = (
    "views",
    "lights",
    "textures",
    "materials",
    "transformations",
    "animations",
    "primitives",
    "components",
)


def inspect_model(model: SceneModel) -> dict[str, object]:
    """Return deterministic diagnostics for a compiled model."""
    categories = {
        name: {"count": len(model.category(name)), "ids": list(model.category(name))}
        for name in _CATEGORY_ORDER
    }
    primitive_kinds: dict[str, int] = {}
    for primitive in model.primitives.values():
        primitive_kinds[primitive.kind] = primitive_kinds.get(primitive.kind, 0) + 1

    return {
        "inspect_schema_version": 1,
        "summary": {
            "root": model.root,
            "axis_length": model.axis_length,
            "default_view": model.default_view,
            "enabled_lights": sum(1 for light in model.lights.values() if light.enabled),
        },
        "categories": categories,
        "primitive_kinds": dict(sorted(primitive_kinds.items())),
        "animations": {
            animation.id: {
                "keyframes": len(animation.keyframes),
                "duration": animation.duration,
            }
            for animation in model.animations.values()
        },
        "components": {
            component.id: {
                "materials": list(component.materials),
                "texture": component.texture.kind
                if component.texture.kind != "named"
                else component.texture.id,
                "animation": component.animation,
                "children": [f"{ref.kind}:{ref.id}" for ref in component.children],
            }
            for component in model.components.values()
        },
    }


def pose_payload(graph: SceneGraph, time: float, step: float | None = None) -> dict[str, object]:
    """Advance every animation to ``time`` and report the resulting draw calls.

    With ``step`` the time is fed in increments of at most ``step`` seconds,
    as a frame loop would.
    """
    remaining = time
    if step is not None and step > 0:
        while remaining > step:
            graph.update(step)
            remaining -= step
    graph.update(remaining)

    adapter = MatrixStackAdapter()
    graph.display(adapter)
    return {
        "time": time,
        "animations": {
            node.id: {
                "animation": node.animation.animation_id,
                "phase": node.animation.phase.value,
                "translate": list(node.animation.pose.translate),
                "rotate": list(node.animation.pose.rotate),
                "scale": list(node.animation.pose.scale),
            }
            for node in graph.animated_components()
        },
        "draw_calls": [
            {
                "primitive": call.primitive_id,
                "material": call.material_id,
                "texture": call.texture.id if call.texture is not None else None,
                "matrix": [[round(float(v), 9) for v in row] for row in call.matrix],
            }
            for call in adapter.draw_calls
        ],
    }


def render_yaml(payload: dict[str, object]) -> str:
    yml = YAML(typ="safe", pure=True)
    yml.default_flow_style = False
    stream = StringIO()
    yml.dump(payload, stream)
    return stream.getvalue()


def render_text(payload: dict[str, object]) -> str:
    """Render ``inspect_model`` output as human-readable text."""
    summary = payload["summary"]
    lines = [
        f"root: {summary['root']}",
        f"default view: {summary['default_view']}",
        f"axis length: {summary['axis_length']:g}",
        "",
    ]
    for name, info in payload["categories"].items():
        ids = ", ".join(info["ids"]) if info["ids"] else "-"
        lines.append(f"{name:<16} {info['count']:>3}  {ids}")

    if payload["animations"]:
        lines.append("")
        for animation_id, info in payload["animations"].items():
            lines.append(
                f"animation {animation_id}: {info['keyframes']} keyframes, "
                f"{info['duration']:g}s"
            )
    return "\n".join(lines) + "\n"
