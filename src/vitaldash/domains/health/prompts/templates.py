"""Prompt template loader: reads the AI prompt text from YAML."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES_PATH = Path(__file__).parent / "templates.yaml"

REQUIRED_TEMPLATES = (
    "analyze_report",
    "health_chat",
    "analyze_vitals",
    "report_query",
    "medicine_info",
    "symptom_check",
    "general_guidance",
)


class TemplateError(Exception):
    """Raised when a template file is malformed or a template is missing."""


@dataclass(frozen=True)
class PromptTemplate:
    id: str
    description: str
    system: str
    user: str

    def render_system(self, **values: Any) -> str:
        return self._format(self.system, values).strip()

    def render_user(self, **values: Any) -> str:
        return self._format(self.user, values).strip()

    def _format(self, text: str, values: dict[str, Any]) -> str:
        try:
            return text.format(**values)
        except KeyError as exc:
            raise TemplateError(f"Template {self.id!r} needs value {exc.args[0]!r}") from exc


class PromptTemplates:
    """Lookup of loaded templates by id."""

    def __init__(self, templates: dict[str, PromptTemplate]) -> None:
        self._templates = templates

    def get(self, template_id: str) -> PromptTemplate:
        try:
            return self._templates[template_id]
        except KeyError:
            raise TemplateError(f"Unknown prompt template: {template_id}") from None

    def ids(self) -> list[str]:
        return sorted(self._templates)

    def __len__(self) -> int:
        return len(self._templates)


def load_prompt_templates(path: str | Path = DEFAULT_TEMPLATES_PATH) -> PromptTemplates:
    """Parse a YAML template file.

    Every id in ``REQUIRED_TEMPLATES`` must be present.
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise TemplateError(f"Template file {path} must contain a mapping")

    templates: dict[str, PromptTemplate] = {}
    for template_id, entry in data.items():
        if not isinstance(entry, dict) or "user" not in entry:
            raise TemplateError(f"Template {template_id!r} in {path} needs a 'user' entry")
        templates[template_id] = PromptTemplate(
            id=template_id,
            description=str(entry.get("description", "")).strip(),
            system=str(entry.get("system") or ""),
            user=str(entry["user"]),
        )

    missing = [t for t in REQUIRED_TEMPLATES if t not in templates]
    if missing:
        raise TemplateError(f"Template file {path} is missing: {', '.join(missing)}")

    logger.info("Loaded %d prompt templates from %s", len(templates), path)
    return PromptTemplates(templates)
