"""Prompt template management."""

import json
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PromptTemplate:
    """Immutable prompt template: fixed instructions followed by a JSON payload."""

    name: str
    version: str
    instructions: str
    payload_heading: str


def render_prompt(template: PromptTemplate, payload: dict[str, Any]) -> str:
    """Render ``template`` with ``payload`` serialized as indented JSON."""
    serialized = json.dumps(payload, indent=2, ensure_ascii=False, default=str)
    return f"{template.instructions.strip()}\n\n{template.payload_heading}\n{serialized}"
