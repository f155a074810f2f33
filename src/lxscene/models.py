"""Pydantic v2 models for compiled LXS scenes."""

from __future__ import annotations

from typing import Annotated, Literal, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from lxscene.transforms import (
    axis_rotation_matrix,
    compose,
    scale_matrix,
    translation_matrix,
)

Vec3 = tuple[float, float, float]
Vec4 = tuple[float, float, float, float]
Color = tuple[float, float, float, float]

MAX_LIGHTS = 8
IDENTITY_TRANSLATE: Vec3 = (0.0, 0.0, 0.0)
IDENTITY_ROTATE: Vec3 = (0.0, 0.0, 0.0)
IDENTITY_SCALE: Vec3 = (1.0, 1.0, 1.0)


def _check_color(value: Color) -> Color:
    for channel in value:
        if not 0.0 <= channel <= 1.0:
            raise ValueError(f"Color channel {channel} outside [0, 1]")
    return value


# --- Views ---


class PerspectiveView(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    kind: Literal["perspective"] = "perspective"
    id: str
    angle_rad: float
    near: float
    far: float
    from_: Vec3 = Field(alias="from")
    to: Vec3


class OrthoView(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    kind: Literal["ortho"] = "ortho"
    id: str
    left: float
    right: float
    bottom: float
    top: float
    near: float
    far: float
    from_: Vec3 = Field(alias="from")
    to: Vec3
    up: Vec3 = (0.0, 1.0, 0.0)


ViewSpec = Annotated[Union[PerspectiveView, OrthoView], Field(discriminator="kind")]


# --- Globals, lights, textures, materials ---


class GlobalsSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ambient: Color
    background: Color

    @field_validator("ambient", "background")
    @classmethod
    def _color_range(cls, v: Color) -> Color:
        return _check_color(v)


class LightSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    kind: Literal["omni", "spot"]
    enabled: bool = True
    location: Vec4
    ambient: Color
    diffuse: Color
    specular: Color
    # Only non-zero terms are recorded: keys are "constant", "linear", "quadratic".
    attenuation: dict[str, float] = {}
    angle: float | None = None
    exponent: float | None = None
    target: Vec3 | None = None

    @field_validator("ambient", "diffuse", "specular")
    @classmethod
    def _color_range(cls, v: Color) -> Color:
        return _check_color(v)

    @model_validator(mode="after")
    def _spot_fields(self) -> LightSpec:
        spot_fields = (self.angle, self.exponent, self.target)
        if self.kind == "spot" and any(f is None for f in spot_fields):
            raise ValueError("spot light requires 'angle', 'exponent' and 'target'")
        if self.kind == "omni" and any(f is not None for f in spot_fields):
            raise ValueError("omni light must not set 'angle', 'exponent' or 'target'")
        return self


class TextureSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    file: str | None = None


class MaterialSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    emission: Color
    ambient: Color
    diffuse: Color
    specular: Color
    shininess: float = 1.0

    @field_validator("emission", "ambient", "diffuse", "specular")
    @classmethod
    def _color_range(cls, v: Color) -> Color:
        return _check_color(v)

    @field_validator("shininess")
    @classmethod
    def _shininess_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"shininess must be >= 0, got {v}")
        return v


# --- Texture references ---


class NoTexture(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["none"] = "none"


class InheritTexture(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["inherit"] = "inherit"


class NamedTexture(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["named"] = "named"
    id: str
    length_s: float
    length_t: float


TextureRef = Annotated[Union[NoTexture, InheritTexture, NamedTexture], Field(discriminator="kind")]

NO_TEXTURE = NoTexture()
INHERIT_TEXTURE = InheritTexture()


# --- Transformations ---


class Translate(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["translate"] = "translate"
    x: float
    y: float
    z: float

    def matrix(self) -> np.ndarray:
        return translation_matrix(self.x, self.y, self.z)


class Scale(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["scale"] = "scale"
    x: float
    y: float
    z: float

    def matrix(self) -> np.ndarray:
        return scale_matrix(self.x, self.y, self.z)


class Rotate(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["rotate"] = "rotate"
    axis: Literal["x", "y", "z"]
    angle_deg: float

    def matrix(self) -> np.ndarray:
        return axis_rotation_matrix(self.axis, self.angle_deg)


TransformOp = Annotated[Union[Translate, Scale, Rotate], Field(discriminator="kind")]


class TransformSpec(BaseModel):
    """An ordered list of primitive ops composed left-to-right.

    ``id`` is None for inline ops written directly inside a component.
    """

    model_config = ConfigDict(extra="forbid")

    id: str | None = None
    ops: list[TransformOp] = []

    def matrix(self) -> np.ndarray:
        return compose(op.matrix() for op in self.ops)


# --- Animations ---


class Keyframe(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    instant: float
    translate: Vec3 = IDENTITY_TRANSLATE
    rotate: Vec3 = IDENTITY_ROTATE
    scale: Vec3 = IDENTITY_SCALE


class AnimationSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    kind: Literal["keyframe"] = "keyframe"
    keyframes: list[Keyframe]

    @field_validator("keyframes")
    @classmethod
    def _at_least_one(cls, v: list[Keyframe]) -> list[Keyframe]:
        if not v:
            raise ValueError("animation requires at least one keyframe")
        return v

    @property
    def duration(self) -> float:
        return self.keyframes[-1].instant


# --- Primitives ---


class RectanglePrimitive(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["rectangle"] = "rectangle"
    id: str
    x1: float
    y1: float
    x2: float
    y2: float

    @model_validator(mode="after")
    def _ordered_corners(self) -> RectanglePrimitive:
        if self.x2 <= self.x1 or self.y2 <= self.y1:
            raise ValueError("rectangle requires x2 > x1 and y2 > y1")
        return self


class TrianglePrimitive(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["triangle"] = "triangle"
    id: str
    p1: Vec3
    p2: Vec3
    p3: Vec3


class CylinderPrimitive(BaseModel):
    """Covers both ``cylinder`` and the NURBS-based ``cylinder2``."""

    model_config = ConfigDict(extra="forbid")

    kind: Literal["cylinder", "cylinder2"] = "cylinder"
    id: str
    base: float = Field(ge=0)
    top: float = Field(ge=0)
    height: float = Field(gt=0)
    slices: int = Field(ge=3)
    stacks: int = Field(ge=1)


class SpherePrimitive(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["sphere"] = "sphere"
    id: str
    radius: float = Field(ge=0)
    slices: int = Field(ge=3)
    stacks: int = Field(ge=1)


class TorusPrimitive(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["torus"] = "torus"
    id: str
    inner: float = Field(ge=0)
    outer: float = Field(ge=0)
    slices: int = Field(ge=3)
    loops: int = Field(ge=1)


class PlanePrimitive(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["plane"] = "plane"
    id: str
    nparts_u: int = Field(ge=0)
    nparts_v: int = Field(ge=0)


class PatchPrimitive(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["patch"] = "patch"
    id: str
    npoints_u: int = Field(ge=0)
    npoints_v: int = Field(ge=0)
    nparts_u: int = Field(ge=0)
    nparts_v: int = Field(ge=0)
    # Row-major: npoints_u rows of npoints_v homogeneous points.
    control_points: list[list[Vec4]]

    @model_validator(mode="after")
    def _grid_shape(self) -> PatchPrimitive:
        if len(self.control_points) != self.npoints_u or any(
            len(row) != self.npoints_v for row in self.control_points
        ):
            raise ValueError(
                f"patch control points must form a {self.npoints_u}x{self.npoints_v} grid"
            )
        return self


PrimitiveSpec = Annotated[
    Union[
        RectanglePrimitive,
        TrianglePrimitive,
        CylinderPrimitive,
        SpherePrimitive,
        TorusPrimitive,
        PlanePrimitive,
        PatchPrimitive,
    ],
    Field(discriminator="kind"),
]

PRIMITIVE_KINDS: frozenset[str] = frozenset(
    {"rectangle", "triangle", "cylinder", "cylinder2", "sphere", "torus", "plane", "patch"}
)


# --- Components ---


class ChildRef(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["component", "primitive"]
    id: str


class ComponentSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    transforms: list[TransformSpec] = []
    # "inherit" is a legal entry and means the parent's active material.
    materials: list[str]
    material_index: int = 0
    texture: TextureRef = NO_TEXTURE
    children: list[ChildRef]
    animation: str | None = None

    @field_validator("materials")
    @classmethod
    def _non_empty_stack(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("component requires at least one material")
        return v

    def matrix(self) -> np.ndarray:
        return compose(t.matrix() for t in self.transforms)


# --- Compiled scene ---


class SceneModel(BaseModel):
    """The typed, cross-referenced result of compiling a scene document."""

    model_config = ConfigDict(extra="forbid")

    root: str
    axis_length: float = 1.0
    default_view: str | None = None
    globals: GlobalsSpec
    views: dict[str, ViewSpec] = {}
    lights: dict[str, LightSpec] = {}
    textures: dict[str, TextureSpec] = {}
    materials: dict[str, MaterialSpec] = {}
    transformations: dict[str, TransformSpec] = {}
    animations: dict[str, AnimationSpec] = {}
    primitives: dict[str, PrimitiveSpec] = {}
    components: dict[str, ComponentSpec] = {}

    def component(self, component_id: str) -> ComponentSpec:
        return self.components[component_id]

    def primitive(self, primitive_id: str) -> PrimitiveSpec:
        return self.primitives[primitive_id]

    def root_component(self) -> ComponentSpec:
        return self.components[self.root]

    def category(self, name: str) -> dict[str, BaseModel]:
        """Return the id-keyed table for a category name (e.g. ``"lights"``)."""
        if name not in _CATEGORIES:
            raise KeyError(f"Unknown category: {name!r}")
        return getattr(self, name)


_CATEGORIES: tuple[str, ...] = (
    "views",
    "lights",
    "textures",
    "materials",
    "transformations",
    "animations",
    "primitives",
    "components",
)
