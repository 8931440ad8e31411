"""Jinja2 environment for the newsletter e-mail and subscription pages."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

TEMPLATES_DIR = Path(__file__).resolve().parent


def build_environment(templates_path: Path | None = None) -> Environment:
    return Environment(
        loader=FileSystemLoader(templates_path or TEMPLATES_DIR),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


_environment = build_environment()


def render_template(template_name: str, context: dict[str, Any], environment: Environment | None = None) -> str:
    env = environment or _environment
    try:
        template = env.get_template(template_name)
    except TemplateNotFound as exc:  # pragma: no cover - packaging error
        raise RuntimeError(f"Template '{template_name}' not found") from exc
    return template.render(**context)
