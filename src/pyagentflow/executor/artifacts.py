"""Extract artifacts from successful step results.

Artifacts are found by convention in result payloads:
- a generic `artifact` field (mapping with at least a name, or any value)
- `type == "file_created"`: a file artifact at `path`
- `type == "prd"`: a requirements document artifact
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pyagentflow.models import Artifact, TaskResult

__all__ = ["collect_artifacts"]


def _generic_artifact(value: Any, step_id: str) -> Artifact:
    if isinstance(value, Mapping):
        return Artifact(
            kind=str(value.get("type") or value.get("kind") or "artifact"),
            name=str(value.get("name") or value.get("path") or step_id),
            path=value.get("path"),
            content=value.get("content"),
            step_id=step_id,
        )
    return Artifact(kind="artifact", name=step_id, content=value, step_id=step_id)


def collect_artifacts(results: Iterable[TaskResult]) -> list[Artifact]:
    """Artifacts from successful results, in result order. Failures contribute none."""
    artifacts: list[Artifact] = []

    for result in results:
        payload = result.result
        if not result.success or not isinstance(payload, Mapping):
            continue

        if payload.get("artifact") is not None:
            artifacts.append(_generic_artifact(payload["artifact"], result.step_id))

        kind = payload.get("type")
        if kind == "file_created":
            path = str(payload.get("path"))
            artifacts.append(Artifact(kind="file", name=path, path=path, step_id=result.step_id))
        elif kind == "prd":
            artifacts.append(
                Artifact(
                    kind="document",
                    name="Product Requirements Document",
                    path=payload.get("path"),
                    content=payload.get("prd"),
                    step_id=result.step_id,
                )
            )

    return artifacts
