"""Warning policy controls for scene compiler diagnostics."""

from __future__ import annotations

import warnings
from dataclasses import dataclass

from lxscene.errors import SceneValueError

KNOWN_CODES: frozenset[str] = frozenset({"W01", "W02", "W03", "W04"})


class SceneWarning(UserWarning):
    """Warning with a machine-readable code."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.detail = message
        super().__init__(f"[{code}] {message}")


@dataclass(frozen=True)
class WarningPolicy:
    """Controls how individual warning codes are handled."""

    warn_as_error: frozenset[str] = frozenset()
    suppress: frozenset[str] = frozenset()


def emit_warning(
    code: str,
    message: str,
    *,
    policy: WarningPolicy | None = None,
    collector: list[SceneWarning] | None = None,
) -> None:
    """Emit a warning, respecting the active policy.

    - If code is in ``policy.suppress``, the warning is silently dropped.
    - If code is in ``policy.warn_as_error``, a ``SceneValueError`` is raised.
    - Otherwise a ``SceneWarning`` is issued via ``warnings.warn`` and, when a
      collector list is given, appended to it.
    """
    if policy is not None:
        if code in policy.suppress:
            return
        if code in policy.warn_as_error:
            raise SceneValueError(f"[{code}] {message}")

    warning = SceneWarning(code, message)
    if collector is not None:
        collector.append(warning)
    warnings.warn(warning, stacklevel=2)


def parse_code_list(raw: str) -> frozenset[str]:
    """Parse a comma-separated string of W-codes and validate them.

    Raises ``ValueError`` for unknown codes.
    """
    codes: set[str] = set()
    for token in raw.split(","):
        token = token.strip()
        if not token:
            continue
        if token not in KNOWN_CODES:
            raise ValueError(f"Unknown warning code: {token!r} (known: {sorted(KNOWN_CODES)})")
        codes.add(token)
    return frozenset(codes)
