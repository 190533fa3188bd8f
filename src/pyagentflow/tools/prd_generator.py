"""Requirements document generation tool.

Renders a markdown Product Requirements Document skeleton from a
free-text request. The document is returned in the result payload
(type "prd", collected as a document artifact) and optionally written
to disk.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pyagentflow.core.context import ToolContext
from pyagentflow.tools.base import Tool

logger = logging.getLogger(__name__)

__all__ = ["PRDGeneratorTool", "render_prd"]

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+|\s*;\s*|\s+and\s+")


def _title_from_request(request: str) -> str:
    words = re.findall(r"[A-Za-z0-9]+", request)[:8]
    return " ".join(w.capitalize() for w in words) or "Untitled Project"


def render_prd(request: str, title: str | None = None, include_specs: bool = True) -> dict[str, Any]:
    """Build the PRD structure and its markdown rendering.

    Returns:
        {"title", "requirements", "content"} where content is markdown
    """
    title = title or _title_from_request(request)
    requirements = [part.strip(" .") for part in _SENTENCE_SPLIT.split(request) if part.strip(" .")]

    lines = [
        f"# {title}",
        "",
        "## Overview",
        "",
        request.strip(),
        "",
        "## Functional Requirements",
        "",
    ]
    lines.extend(f"{i}. {req}" for i, req in enumerate(requirements, start=1))

    if include_specs:
        lines += [
            "",
            "## Technical Specifications",
            "",
            "- Architecture: to be decided during design review",
            "- Testing: automated unit and integration tests",
        ]

    lines += ["", "## Open Questions", "", "- Scope and priorities to be confirmed", ""]

    return {"title": title, "requirements": requirements, "content": "\n".join(lines)}


class PRDGeneratorTool(Tool):
    """Generate a Product Requirements Document from a user request.

    Params:
        request: Free-text description of the product (required)
        title: Document title (derived from the request if absent)
        include_specs: Add a technical specifications section (default True)
        output_path: Write the markdown to this path when given

    Returns:
        {"type": "prd", "prd": {...}, "summary": {...}, "path": str | None}
    """

    name = "prd_generator"
    description = "Generate Product Requirements Document from user request"

    def validate(self, params: Mapping[str, Any]) -> bool:
        request = params.get("request") if params else None
        return isinstance(request, str) and len(request.strip()) > 0

    async def execute(self, params: Mapping[str, Any], context: ToolContext) -> Any:
        prd = render_prd(
            params["request"],
            title=params.get("title"),
            include_specs=params.get("include_specs", params.get("includeSpecs", True)),
        )

        path: str | None = None
        if params.get("output_path"):
            target = Path(params["output_path"])
            if not target.is_absolute():
                target = Path(context.working_directory) / target
            await asyncio.to_thread(_write_document, target, prd["content"])
            path = str(target)
            logger.info(f"Wrote PRD to {path}")

        return {
            "type": "prd",
            "prd": prd,
            "summary": {"title": prd["title"], "features": len(prd["requirements"])},
            "path": path,
        }


def _write_document(target: Path, content: str) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
