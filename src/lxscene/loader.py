"""End-to-end scene loading: read, compile, link."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from lxscene.compiler import SceneCompiler
from lxscene.errors import SceneError
from lxscene.graph import SceneGraph, link
from lxscene.models import SceneModel
from lxscene.reader import AttributeReader, load_document
from lxscene.warning_policy import SceneWarning, WarningPolicy


@dataclass
class LoadResult:
    """Outcome of a load; on failure ``model`` and ``graph`` stay None."""

    model: SceneModel | None = None
    graph: SceneGraph | None = None
    error: SceneError | None = None
    warnings: list[SceneWarning] = field(default_factory=list)

    @property
    def loaded_ok(self) -> bool:
        return self.error is None and self.graph is not None


def load_scene(
    source: str | Path,
    *,
    reader: AttributeReader | None = None,
    warning_policy: WarningPolicy | None = None,
) -> LoadResult:
    """Load a scene document and link its graph.

    Never raises ``SceneError``: the first fatal error is stored on the result,
    and the graph is not built.
    """
    compiler = SceneCompiler(reader=reader, warning_policy=warning_policy)
    result = LoadResult(warnings=compiler.warnings)
    try:
        root = load_document(source)
        result.model = compiler.compile(root)
        result.graph = link(result.model)
    except SceneError as e:
        result.model = None
        result.graph = None
        result.error = e
    return result
