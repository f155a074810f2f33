"""Shared fixtures: a factory for small but complete scene documents."""

from __future__ import annotations

import pytest

WHITE = 'r="1" g="1" b="1" a="1"'
GREY = 'r="0.5" g="0.5" b="0.5" a="1"'
BLACK = 'r="0" g="0" b="0" a="1"'

DEFAULT_BLOCKS: dict[str, str] = {
    "scene": '<scene root="root" axis_length="2"/>',
    "views": """
    <views default="cam">
        <perspective id="cam" near="0.1" far="500" angle="45">
            <from x="30" y="15" z="30"/>
            <to x="0" y="0" z="0"/>
        </perspective>
    </views>""",
    "globals": f"""
    <globals>
        <ambient {GREY}/>
        <background {BLACK}/>
    </globals>""",
    "lights": f"""
    <lights>
        <omni id="light0" enabled="1">
            <location x="9.8" y="11.9" z="10" w="1"/>
            <ambient {BLACK}/>
            <diffuse {WHITE}/>
            <specular {WHITE}/>
        </omni>
    </lights>""",
    "textures": """
    <textures>
        <texture id="wood" file="images/wood.jpg"/>
    </textures>""",
    "materials": f"""
    <materials>
        <material id="grey" shininess="10">
            <emission {BLACK}/>
            <ambient {GREY}/>
            <diffuse {GREY}/>
            <specular {WHITE}/>
        </material>
    </materials>""",
    "transformations": """
    <transformations>
        <transformation id="lift">
            <translate x="0" y="1" z="0"/>
        </transformation>
    </transformations>""",
    "animations": "<animations/>",
    "primitives": """
    <primitives>
        <primitive id="quad">
            <rectangle x1="-0.5" y1="-0.5" x2="0.5" y2="0.5"/>
        </primitive>
    </primitives>""",
    "components": """
    <components>
        <component id="root">
            <transformation/>
            <materials><material id="grey"/></materials>
            <texture id="none"/>
            <children><primitiveref id="quad"/></children>
        </component>
    </components>""",
}

BLOCK_NAMES = tuple(DEFAULT_BLOCKS)


def build_scene(order: tuple[str, ...] = BLOCK_NAMES, **blocks: str | None) -> str:
    """Assemble an ``<lxs>`` document; a block overridden with None is omitted."""
    merged = {**DEFAULT_BLOCKS, **blocks}
    body = "\n".join(merged[name] for name in order if merged.get(name) is not None)
    return f"<lxs>\n{body}\n</lxs>\n"


@pytest.fixture
def make_scene():
    return build_scene


@pytest.fixture
def minimal_scene_xml() -> str:
    return build_scene()


@pytest.fixture
def animated_scene_xml() -> str:
    """Two components sharing one animation under a textured, transformed root."""
    return build_scene(
        animations="""
    <animations>
        <animation id="slide">
            <keyframe instant="1">
                <translate x="0" y="0" z="0"/>
                <rotate angle_x="0" angle_y="0" angle_z="0"/>
                <scale x="1" y="1" z="1"/>
            </keyframe>
            <keyframe instant="2">
                <translate x="10" y="0" z="0"/>
                <rotate angle_x="0" angle_y="90" angle_z="0"/>
                <scale x="1" y="1" z="1"/>
            </keyframe>
        </animation>
    </animations>""",
        components="""
    <components>
        <component id="root">
            <transformation>
                <transformationref id="lift"/>
            </transformation>
            <materials><material id="grey"/></materials>
            <texture id="wood" length_s="1" length_t="1"/>
            <children>
                <componentref id="left"/>
                <componentref id="right"/>
            </children>
        </component>
        <component id="left">
            <transformation/>
            <animationref id="slide"/>
            <materials><material id="inherit"/></materials>
            <texture id="inherit"/>
            <children><primitiveref id="quad"/></children>
        </component>
        <component id="right">
            <transformation>
                <translate x="-5" y="0" z="0"/>
            </transformation>
            <animationref id="slide"/>
            <materials><material id="grey"/></materials>
            <texture id="none"/>
            <children><primitiveref id="quad"/></children>
        </component>
    </components>""",
    )
