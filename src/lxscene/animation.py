"""Keyframe animation runtime: time-driven pose interpolation."""

from __future__ import annotations

import math
from bisect import bisect_right
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Union

from lxscene.models import (
    IDENTITY_ROTATE,
    IDENTITY_SCALE,
    IDENTITY_TRANSLATE,
    AnimationSpec,
    Keyframe,
    Vec3,
)

if TYPE_CHECKING:
    from lxscene.adapter import RenderAdapter


class AnimationPhase(Enum):
    PRE_START = "pre_start"
    SEGMENT = "segment"
    HELD = "held"


@dataclass(frozen=True)
class Pose:
    translate: Vec3 = IDENTITY_TRANSLATE
    rotate: Vec3 = IDENTITY_ROTATE  # degrees per axis
    scale: Vec3 = IDENTITY_SCALE

    @classmethod
    def of(cls, keyframe: Keyframe) -> Pose:
        return cls(translate=keyframe.translate, rotate=keyframe.rotate, scale=keyframe.scale)


IDENTITY_POSE = Pose()


@dataclass(frozen=True)
class Sample:
    phase: AnimationPhase
    segment: int  # k for SEGMENT, 0 for PRE_START, len(keyframes) for HELD
    pose: Pose


def _lerp(a: Vec3, b: Vec3, fraction: float) -> Vec3:
    return (
        a[0] + (b[0] - a[0]) * fraction,
        a[1] + (b[1] - a[1]) * fraction,
        a[2] + (b[2] - a[2]) * fraction,
    )


def sample_keyframes(keyframes: Sequence[Keyframe], elapsed: float) -> Sample:
    """Evaluate the pose of a keyframe table at an elapsed time.

    The result depends only on ``keyframes`` and ``elapsed``:

    - before the first instant the pose moves from identity toward the first
      keyframe (scale moves from 1, not from 0);
    - between keyframes ``k-1`` and ``k`` each channel is interpolated linearly
      per axis;
    - at or after the last instant the pose is held at the last keyframe.

    Keyframes sharing an instant never divide by zero: the later one wins.
    """
    first = keyframes[0]
    last = keyframes[-1]

    if elapsed < first.instant:
        fraction = elapsed / first.instant
        return Sample(
            phase=AnimationPhase.PRE_START,
            segment=0,
            pose=Pose(
                translate=_lerp(IDENTITY_TRANSLATE, first.translate, fraction),
                rotate=_lerp(IDENTITY_ROTATE, first.rotate, fraction),
                scale=_lerp(IDENTITY_SCALE, first.scale, fraction),
            ),
        )

    if elapsed >= last.instant:
        return Sample(phase=AnimationPhase.HELD, segment=len(keyframes), pose=Pose.of(last))

    instants = [kf.instant for kf in keyframes]
    k = bisect_right(instants, elapsed)
    previous, target = keyframes[k - 1], keyframes[k]
    span = target.instant - previous.instant
    if span == 0:
        return Sample(phase=AnimationPhase.SEGMENT, segment=k, pose=Pose.of(target))

    fraction = (elapsed - previous.instant) / span
    return Sample(
        phase=AnimationPhase.SEGMENT,
        segment=k,
        pose=Pose(
            translate=_lerp(previous.translate, target.translate, fraction),
            rotate=_lerp(previous.rotate, target.rotate, fraction),
            scale=_lerp(previous.scale, target.scale, fraction),
        ),
    )


class KeyframeAnimation:
    """Runtime state of one keyframe animation bound to one component.

    Instances never share state, even when built from the same spec.
    """

    kind = "keyframe"

    def __init__(self, spec: AnimationSpec) -> None:
        self.spec = spec
        self.elapsed = 0.0
        self._sample = sample_keyframes(spec.keyframes, 0.0)

    @property
    def animation_id(self) -> str:
        return self.spec.id

    @property
    def phase(self) -> AnimationPhase:
        return self._sample.phase

    @property
    def segment(self) -> int:
        return self._sample.segment

    @property
    def pose(self) -> Pose:
        return self._sample.pose

    @property
    def finished(self) -> bool:
        return self._sample.phase is AnimationPhase.HELD

    def update(self, delta: float) -> None:
        """Advance elapsed time by ``delta`` seconds; negative deltas count as 0."""
        self.elapsed += max(delta, 0.0)
        if self.finished:
            return
        self._sample = sample_keyframes(self.spec.keyframes, self.elapsed)

    def apply(self, adapter: RenderAdapter) -> None:
        """Issue translate, rotate X/Y/Z, then scale for the current pose."""
        pose = self._sample.pose
        adapter.translate(*pose.translate)
        adapter.rotate(math.radians(pose.rotate[0]), 1.0, 0.0, 0.0)
        adapter.rotate(math.radians(pose.rotate[1]), 0.0, 1.0, 0.0)
        adapter.rotate(math.radians(pose.rotate[2]), 0.0, 0.0, 1.0)
        adapter.scale(*pose.scale)


# Add further runtime kinds here; each provides update(delta) and apply(adapter).
Animation = Union[KeyframeAnimation]

_ANIMATION_KINDS: dict[str, type[KeyframeAnimation]] = {
    "keyframe": KeyframeAnimation,
}


def create_animation(spec: AnimationSpec) -> Animation:
    """Build a fresh runtime state for an animation spec."""
    return _ANIMATION_KINDS[spec.kind](spec)
