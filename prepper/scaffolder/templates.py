"""Jinja2 template rendering for template assets.

Provides the TemplateRenderer class which loads Jinja2 templates from the
template source paths (a cloned or local rails-prepper checkout first, then
the assets bundled with this package) and renders them with application
context data.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

BUNDLED_FILES_DIR = Path(__file__).parent / "files"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates found in an ordered list of source paths.

    The first source path containing a template wins, so a checkout of the
    template repository can override any bundled asset.
    """

    def __init__(self, source_paths: list[Path] | None = None) -> None:
        if not source_paths:
            source_paths = [BUNDLED_FILES_DIR]
        self.source_paths = [Path(p) for p in source_paths]
        self.env = Environment(
            loader=FileSystemLoader([str(p) for p in self.source_paths]),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to a source path (e.g.
                ``"config/cable.yml.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    def find(self, relative_path: str) -> Path | None:
        """Return the first existing ``<source_path>/<relative_path>``, or ``None``."""
        for base in self.source_paths:
            candidate = base / relative_path
            if candidate.is_file():
                return candidate
        return None
