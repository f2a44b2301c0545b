"""rails-prepper configuration.

Centralised, typed configuration for a template run. All settings use
Pydantic v2 models so they can be validated at construction time and serialised
to/from JSON or environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

DEFAULT_REPOSITORY_URL = "https://github.com/khrisnagunanasurya/rails-prepper.git"

_TRUTHY = {"1", "y", "yes", "true", "on"}
_FALSY = {"0", "n", "no", "false", "off"}


class AnswerPresets(BaseModel):
    """Pre-recorded answers to the template's yes/no questions.

    ``None`` means "ask interactively".
    """

    api: Optional[bool] = None
    activeadmin: Optional[bool] = None
    devise: Optional[bool] = None
    sidekiq: Optional[bool] = None
    commit: Optional[bool] = None


class Config(BaseModel):
    """Global rails-prepper configuration.

    Instances are typically created once by the CLI entry point and then
    passed to ``Prepper``.
    """

    app_path: Path = Field(default=Path("."))
    template_location: str = Field(
        default="",
        description="Local path or http(s) URL of template.rb; empty uses the bundled files",
    )
    repository_url: str = Field(default=DEFAULT_REPOSITORY_URL)
    answers: AnswerPresets = Field(default_factory=AnswerPresets)
    assume_yes: bool = Field(default=False, description="Answer every question with yes")
    pretend: bool = Field(default=False, description="Print actions without executing them")
    skip_bundle: bool = Field(default=False)
    skip_format: bool = Field(default=False)
    generate_secret_key: bool = Field(default=False)
    command_timeout: int = Field(default=600, ge=10, description="Per-command timeout in seconds")
    formatter_command: str = Field(
        default="rubocop --auto-correct --cache true --format fuubar"
    )

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def app_root(self) -> Path:
        """Absolute path of the Rails application being prepared."""
        return self.app_path.resolve()

    @property
    def original_app_name(self) -> str:
        """Directory name of the application, as typed to ``rails new``."""
        return self.app_root.name

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls, **overrides: Any) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            PREPPER_TEMPLATE, PREPPER_REPOSITORY, PREPPER_COMMAND_TIMEOUT,
            PREPPER_API, PREPPER_ACTIVEADMIN, PREPPER_DEVISE,
            PREPPER_SIDEKIQ, PREPPER_COMMIT.

        Keyword arguments override whatever the environment provides.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("PREPPER_TEMPLATE"):
            kwargs["template_location"] = os.environ["PREPPER_TEMPLATE"]
        if os.environ.get("PREPPER_REPOSITORY"):
            kwargs["repository_url"] = os.environ["PREPPER_REPOSITORY"]
        if os.environ.get("PREPPER_COMMAND_TIMEOUT"):
            kwargs["command_timeout"] = int(os.environ["PREPPER_COMMAND_TIMEOUT"])

        presets: dict[str, bool] = {}
        for name in AnswerPresets.model_fields:
            value = _parse_bool(os.environ.get(f"PREPPER_{name.upper()}"))
            if value is not None:
                presets[name] = value
        kwargs["answers"] = AnswerPresets(**presets)

        kwargs.update(overrides)
        return cls(**kwargs)


def _parse_bool(raw: str | None) -> bool | None:
    """Interpret an environment value as a yes/no answer.

    Unset, empty or unrecognised values mean "no preset".
    """
    if raw is None:
        return None
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    return None
