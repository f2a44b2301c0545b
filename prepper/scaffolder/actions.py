"""File and command actions applied to a Rails application.

``AppActions`` is the small set of primitives the template is written
against: copy or render a file from the template source paths, insert a
snippet next to an anchor string, append to a file, run ``rails generate``
and other shell commands, and talk to git.  Each action prints a status
line and, in pretend mode, changes nothing on disk.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from prepper.scaffolder.gemfile import GemGroup, append_plan, gem_names
from prepper.scaffolder.templates import TemplateRenderer
from prepper.utils import (
    CommandError,
    PrepperError,
    format_command,
    print_warning,
    run_command,
    sanitize_name,
    say_status,
)

APPLICATION_ANCHOR = "class Application < Rails::Application\n"
ENVIRONMENT_ANCHOR = "Rails.application.configure do\n"


class TemplateFileNotFound(PrepperError):
    """Raised when a file to copy exists in none of the source paths."""

    def __init__(self, relative_path: str, source_paths: list[Path]) -> None:
        self.relative_path = relative_path
        self.source_paths = source_paths
        searched = ", ".join(str(p) for p in source_paths)
        super().__init__(f"Could not find {relative_path!r} in any source path: {searched}")


class AppActions:
    """Primitives for mutating one Rails application directory.

    Args:
        app_root: Root of the Rails application.
        source_paths: Directories searched, in order, for files to copy.
        pretend: Print what would happen without touching disk or running
            commands.
        timeout: Per-command timeout in seconds.
    """

    def __init__(
        self,
        app_root: str | Path,
        source_paths: list[Path] | None = None,
        pretend: bool = False,
        timeout: int = 600,
    ) -> None:
        self.app_root = Path(app_root).resolve()
        self.renderer = TemplateRenderer(source_paths)
        self.pretend = pretend
        self.timeout = timeout

    # -- Context -----------------------------------------------------------

    @property
    def app_name(self) -> str:
        return sanitize_name(self.app_root.name)

    def template_context(self) -> dict[str, Any]:
        return {
            "app_name": self.app_name,
        }

    # -- Files -------------------------------------------------------------

    def copy_file(self, source: str, dest: str | None = None, force: bool = False) -> Path:
        """Copy *source* from the first source path holding it into the app."""
        found = self.renderer.find(source)
        if found is None:
            raise TemplateFileNotFound(source, self.renderer.source_paths)
        content = found.read_text(encoding="utf-8")
        return self.create_file(dest or source, content, force=force)

    def template(self, source: str, dest: str | None = None, force: bool = False) -> Path:
        """Render ``<source>.j2`` with the application context and write it."""
        template_name = source if source.endswith(".j2") else f"{source}.j2"
        if self.renderer.find(template_name) is None:
            raise TemplateFileNotFound(template_name, self.renderer.source_paths)
        content = self.renderer.render(template_name, self.template_context())
        target = dest or template_name[: -len(".j2")]
        return self.create_file(target, content, force=force)

    def create_file(self, relative_path: str, content: str, force: bool = False) -> Path:
        """Write *content*; an existing, different file is kept unless *force*."""
        target = self.app_root / relative_path
        if target.exists():
            if target.read_text(encoding="utf-8") == content:
                say_status("identical", relative_path)
                return target
            if not force:
                say_status("skip", relative_path)
                return target
            say_status("force", relative_path)
        else:
            say_status("create", relative_path)

        if not self.pretend:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        return target

    def insert_into_file(
        self,
        relative_path: str,
        content: str,
        *,
        after: str | None = None,
        before: str | None = None,
        force: bool = False,
    ) -> bool:
        """Insert *content* after or before the first occurrence of an anchor.

        Returns ``True`` if the file changed.  Content that is already present
        is not inserted twice unless *force* is set.  A missing anchor leaves
        the file untouched and prints an ``unchanged`` status.  In pretend
        mode a missing file is reported as an insert, since an earlier
        generator that was only printed would have created it.

        Raises:
            ValueError: If neither or both of *after* and *before* are given.
            FileNotFoundError: If the target file does not exist.
        """
        if (after is None) == (before is None):
            raise ValueError("insert_into_file needs exactly one of after= or before=")

        target = self.app_root / relative_path
        if not target.is_file():
            if self.pretend:
                say_status("insert", relative_path)
                return False
            raise FileNotFoundError(f"{relative_path} does not exist in {self.app_root}")

        original = target.read_text(encoding="utf-8")
        if not force and content in original:
            say_status("identical", relative_path)
            return False

        anchor = after if after is not None else before
        index = original.find(anchor)
        if index == -1:
            say_status(
                "unchanged",
                f"{relative_path} (anchor {anchor.strip()!r} not found)",
            )
            return False

        if after is not None:
            index += len(anchor)
        updated = original[:index] + content + original[index:]

        say_status("insert", relative_path)
        if not self.pretend:
            target.write_text(updated, encoding="utf-8")
        return True

    def append_to_file(self, relative_path: str, content: str) -> None:
        target = self.app_root / relative_path
        say_status("append", relative_path)
        if self.pretend:
            return
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("a", encoding="utf-8") as handle:
            handle.write(content)

    def initializer(self, filename: str, content: str) -> Path:
        """Create ``config/initializers/<filename>``."""
        return self.create_file(f"config/initializers/{filename}", content)

    def environment(self, line: str, env: str | None = None) -> bool:
        """Add a configuration line to the application or one environment.

        Without *env* the line goes into ``config/application.rb`` right after
        the ``Application`` class opens.  With *env* it goes right after the
        ``Rails.application.configure do`` line of
        ``config/environments/<env>.rb``.
        """
        if env is None:
            return self.insert_into_file(
                "config/application.rb",
                f"    {line}\n\n",
                after=APPLICATION_ANCHOR,
            )
        return self.insert_into_file(
            f"config/environments/{env}.rb",
            f"  {line}\n",
            after=ENVIRONMENT_ANCHOR,
        )

    def add_gems(self, plan: list[GemGroup]) -> None:
        """Append a gem plan to the application's Gemfile."""
        gemfile = self.app_root / "Gemfile"
        if not gemfile.is_file():
            raise FileNotFoundError(f"Gemfile does not exist in {self.app_root}")
        for name in gem_names(plan):
            say_status("gemfile", name, color="green")
        if not self.pretend:
            append_plan(gemfile, plan)

    # -- Commands ----------------------------------------------------------

    def run(
        self,
        command: str | list[str],
        *,
        abort_on_failure: bool = True,
        env: dict[str, str] | None = None,
        status: str = "run",
    ) -> str:
        """Run a command inside the application root and return its stdout.

        Raises:
            CommandError: If the command fails and *abort_on_failure* is set.
        """
        printable = format_command(command)
        say_status(status, printable)
        if self.pretend:
            return ""

        returncode, stdout, stderr = run_command(
            command, cwd=self.app_root, timeout=self.timeout, env=env
        )
        if returncode != 0:
            message = f"Command failed (exit {returncode}): {printable}"
            if stderr:
                message = f"{message}\n{stderr}"
            if abort_on_failure:
                raise CommandError(
                    message, command=printable, returncode=returncode, stderr=stderr
                )
            print_warning(message)
        return stdout

    def generate(self, what: str, *, env: dict[str, str] | None = None) -> str:
        """Run ``bin/rails generate <what>``; failures abort the run."""
        return self.run(f"bin/rails generate {what}", env=env, status="generate")

    def rails_command(self, command: str, *, env: dict[str, str] | None = None) -> str:
        return self.run(f"bin/rails {command}", env=env, status="rails")

    def git(self, *args: str) -> str:
        """Run ``git <args>``; failures raise ``CommandError``."""
        return self.run(["git", *args], status="git")

    def bundle_install(self) -> str:
        return self.run("bundle install", status="bundle")
