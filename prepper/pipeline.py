"""rails-prepper run orchestrator.

Applies the application template to a Rails app in a fixed order:

1. Resolve the template source (local path, or clone into a temp dir).
2. Ask the feature questions.
3. Add the gems and run ``bundle install``.
4. After bundling: application name, setup steps, initial commit, formatter,
   overview, amended commit.

Usage::

    rails-prepper ./my_app
    rails-prepper ./my_app --template https://raw.githubusercontent.com/u/rails-prepper/main/template.rb
    rails-prepper ./my_app --yes --skip-bundle
"""

from __future__ import annotations

import sys
import time
from pathlib import Path
from typing import Any, Callable

from prepper.config import AnswerPresets, Config
from prepper.scaffolder.actions import AppActions
from prepper.scaffolder.answers import Answers
from prepper.scaffolder.recipe import Recipe
from prepper.scaffolder.source import TemplateSource, resolve_source
from prepper.utils import (
    PrepperError,
    console,
    format_duration,
    print_error,
    print_stage_header,
    print_success,
    print_summary_table,
)


class Prepper:
    """Drives one template run against one application directory.

    Attributes:
        config: Run configuration.
        answers: Memoised answers to the template questions.
        source: Resolved template source, available once ``run`` started.
    """

    def __init__(
        self,
        config: Config,
        ask: Callable[[str], bool] | None = None,
    ) -> None:
        self.config = config
        self.answers = Answers(config.answers, assume_yes=config.assume_yes, ask=ask)
        self.source: TemplateSource | None = None
        self.secret_key: str | None = None

    def run(self) -> dict[str, Any]:
        """Apply the template.  Errors propagate to the caller.

        The temporary checkout of a remote template is removed before this
        method returns or raises.
        """
        start = time.monotonic()
        app_root = self.config.app_root
        if not (app_root / "Gemfile").is_file():
            raise PrepperError(f"{app_root} does not look like a Rails application (no Gemfile)")

        self.source = resolve_source(
            self.config.template_location,
            repository_url=self.config.repository_url,
            timeout=self.config.command_timeout,
        )
        try:
            actions = AppActions(
                app_root,
                source_paths=self.source.source_paths,
                pretend=self.config.pretend,
                timeout=self.config.command_timeout,
            )
            recipe = Recipe(
                actions,
                self.answers,
                app_name=self.config.original_app_name,
                formatter_command=self.config.formatter_command,
            )
            self._apply(recipe, actions)
        finally:
            self.source.cleanup()

        return {
            "success": True,
            "app_path": str(app_root),
            "answers": self.answers.answered(),
            "secret_key": self.secret_key,
            "duration": time.monotonic() - start,
        }

    def _apply(self, recipe: Recipe, actions: AppActions) -> None:
        print_stage_header("Questions")
        recipe.ask_questions()

        print_stage_header("Gemfile")
        recipe.add_gems()
        if not self.config.skip_bundle:
            actions.bundle_install()

        print_stage_header("Setup")
        recipe.set_application_name()
        recipe.run_setup()
        recipe.commit_to_git(message="Initial commit")

        if not self.config.skip_format:
            print_stage_header("Formatting")
            recipe.clean_up()

        if self.config.generate_secret_key:
            self.secret_key = recipe.generate_secret_key()

        recipe.overview()
        recipe.commit_to_git(amend=True)


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def build_parser():
    import argparse

    parser = argparse.ArgumentParser(
        prog="rails-prepper",
        description="Prepare a freshly generated Rails application with a standard toolset",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  rails-prepper ./my_app\n"
            "  rails-prepper ./my_app --yes --skip-bundle\n"
            "  rails-prepper ./my_app --template https://raw.githubusercontent.com/"
            "khrisnagunanasurya/rails-prepper/main/template.rb\n"
        ),
    )
    parser.add_argument("app_path", help="Path to the Rails application")
    parser.add_argument(
        "--template", "-t",
        default=None,
        help="Local path or http(s) URL of the template (default: bundled files)",
    )
    parser.add_argument("--yes", "-y", action="store_true", help="Answer yes to every question")
    for name in AnswerPresets.model_fields:
        group = parser.add_mutually_exclusive_group()
        group.add_argument(f"--{name}", dest=name, action="store_true", default=None,
                           help=f"Answer yes to the {name} question")
        group.add_argument(f"--no-{name}", dest=name, action="store_false", default=None,
                           help=f"Answer no to the {name} question")
    parser.add_argument("--pretend", "-p", action="store_true", help="Print actions only")
    parser.add_argument("--skip-bundle", action="store_true", help="Do not run bundle install")
    parser.add_argument("--skip-format", action="store_true", help="Do not run the formatter")
    parser.add_argument("--secret-key", action="store_true", help="Print a fresh secret key")
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for ``rails-prepper``."""
    args = build_parser().parse_args(argv)

    app_path = Path(args.app_path)
    if not app_path.is_dir():
        console.print(f"[bold red]Error:[/bold red] Application directory not found: {app_path}")
        return 1

    overrides: dict[str, Any] = {
        "app_path": app_path,
        "assume_yes": args.yes,
        "pretend": args.pretend,
        "skip_bundle": args.skip_bundle,
        "skip_format": args.skip_format,
        "generate_secret_key": args.secret_key,
    }
    if args.template:
        overrides["template_location"] = args.template

    try:
        config = Config.from_env(**overrides)
    except ValueError as exc:
        print_error(f"Invalid configuration: {exc}")
        return 1

    cli_presets = {
        name: getattr(args, name)
        for name in AnswerPresets.model_fields
        if getattr(args, name) is not None
    }
    if cli_presets:
        config.answers = config.answers.model_copy(update=cli_presets)

    try:
        result = Prepper(config).run()
    except (PrepperError, FileNotFoundError) as exc:
        print_error(str(exc))
        return 1

    summary = {name: "yes" if value else "no" for name, value in result["answers"].items()}
    summary["duration"] = format_duration(result["duration"])
    print_summary_table(summary, title="rails-prepper")
    if result["secret_key"]:
        console.print(f"Secret key: {result['secret_key']}", highlight=False)
    print_success("Template applied.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
