"""Render adapter interface and a numpy matrix-stack implementation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

import numpy as np

from lxscene.models import NamedTexture
from lxscene.transforms import rotation_matrix, scale_matrix, translation_matrix


class RenderAdapter(Protocol):
    """Operations the scene graph issues while it is displayed."""

    def push_matrix(self) -> None: ...

    def pop_matrix(self) -> None: ...

    def mult_matrix(self, matrix: np.ndarray) -> None: ...

    def translate(self, x: float, y: float, z: float) -> None: ...

    def rotate(self, angle_rad: float, x: float, y: float, z: float) -> None: ...

    def scale(self, x: float, y: float, z: float) -> None: ...

    def draw(
        self,
        primitive_id: str,
        material_id: str | None,
        texture: NamedTexture | None,
    ) -> None: ...


@dataclass
class DrawCall:
    primitive_id: str
    matrix: np.ndarray  # 4x4 world matrix at draw time
    material_id: str | None
    texture: NamedTexture | None


@dataclass
class MatrixStackAdapter:
    """Keeps a model-matrix stack and records every draw call.

    Each operation post-multiplies the current matrix, like a fixed-function
    GL matrix stack.
    """

    matrix: np.ndarray = field(default_factory=lambda: np.eye(4, dtype=np.float64))
    stack: list[np.ndarray] = field(default_factory=list)
    draw_calls: list[DrawCall] = field(default_factory=list)

    def push_matrix(self) -> None:
        self.stack.append(self.matrix.copy())

    def pop_matrix(self) -> None:
        if not self.stack:
            raise IndexError("pop_matrix called on an empty matrix stack")
        self.matrix = self.stack.pop()

    def mult_matrix(self, matrix: np.ndarray) -> None:
        self.matrix = self.matrix @ np.asarray(matrix, dtype=np.float64)

    def translate(self, x: float, y: float, z: float) -> None:
        self.mult_matrix(translation_matrix(x, y, z))

    def rotate(self, angle_rad: float, x: float, y: float, z: float) -> None:
        self.mult_matrix(rotation_matrix(angle_rad, (x, y, z)))

    def scale(self, x: float, y: float, z: float) -> None:
        self.mult_matrix(scale_matrix(x, y, z))

    def draw(
        self,
        primitive_id: str,
        material_id: str | None,
        texture: NamedTexture | None,
    ) -> None:
        self.draw_calls.append(
            DrawCall(
                primitive_id=primitive_id,
                matrix=self.matrix.copy(),
                material_id=material_id,
                texture=texture,
            )
        )

    def reset(self) -> None:
        """Clear recorded draw calls and return to the identity matrix."""
        self.matrix = np.eye(4, dtype=np.float64)
        self.stack.clear()
        self.draw_calls.clear()
