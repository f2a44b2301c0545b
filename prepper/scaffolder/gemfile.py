"""Gemfile declarations and rendering.

The template's dependency changes are described as data first
(``build_gem_plan``) and then appended to the application's ``Gemfile`` in
the same textual form ``rails new`` uses::

    group :development, :test do
      gem "bullet", "~> 6.1"
    end
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from prepper.scaffolder.answers import Answers


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class Gem(BaseModel):
    """One ``gem "name", ...`` line."""

    name: str
    requirements: list[str] = Field(default_factory=list)
    require: Optional[bool] = None

    def render(self, indent: int = 0) -> str:
        parts = [_quote(self.name)] + [_quote(r) for r in self.requirements]
        if self.require is not None:
            parts.append(f"require: {'true' if self.require else 'false'}")
        return " " * indent + "gem " + ", ".join(parts)


class GemGroup(BaseModel):
    """A ``group :a, :b do ... end`` block, or top-level gems when ``groups`` is empty."""

    groups: list[str] = Field(default_factory=list)
    gems: list[Gem] = Field(default_factory=list)

    def render(self) -> str:
        if not self.groups:
            return "".join(gem.render() + "\n" for gem in self.gems)
        header = "group " + ", ".join(f":{g}" for g in self.groups) + " do\n"
        body = "".join(gem.render(indent=2) + "\n" for gem in self.gems)
        return "\n" + header + body + "end\n"


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------


def build_gem_plan(answers: "Answers") -> list[GemGroup]:
    """Return the Gemfile additions for a set of answers, in write order."""
    plan: list[GemGroup] = [
        GemGroup(
            groups=["development", "test"],
            gems=[
                Gem(name="bullet", requirements=["~> 6.1"]),
                Gem(name="rspec-rails", requirements=["~> 5.0.0"]),
                Gem(name="rswag-specs"),
            ],
        ),
        GemGroup(
            groups=["development"],
            gems=[
                Gem(name="better_errors"),
                Gem(name="binding_of_caller"),
                Gem(name="brakeman", requirements=["~> 5.0"]),
                Gem(name="pry-rails"),
                Gem(name="rubocop", require=False),
                Gem(name="rubocop-performance", require=False),
                Gem(name="rubocop-rails", require=False),
                Gem(name="rubocop-rspec", require=False),
            ],
        ),
    ]

    test_gems = [
        Gem(name="database_cleaner-active_record"),
        Gem(name="factory_bot_rails"),
        Gem(name="faker"),
    ]
    if answers.sidekiq:
        test_gems.append(Gem(name="rspec-sidekiq"))
    test_gems += [
        Gem(name="shoulda-matchers", requirements=["~> 5.0"]),
        Gem(name="simplecov", require=False),
        Gem(name="timecop"),
    ]
    plan.append(GemGroup(groups=["test"], gems=test_gems))

    top_level: list[Gem] = []
    if answers.api:
        top_level += [Gem(name="rswag-api"), Gem(name="rswag-ui")]
    if answers.sidekiq:
        top_level += [Gem(name="sidekiq"), Gem(name="sidekiq-cron")]
    if answers.activeadmin:
        top_level.append(Gem(name="activeadmin"))
    if answers.devise:
        top_level.append(Gem(name="devise", requirements=["~> 4.8", ">= 4.8.0"]))
    if answers.paper_trail:
        top_level.append(Gem(name="paper_trail"))
    if top_level:
        plan.append(GemGroup(gems=top_level))

    return plan


def gem_names(plan: list[GemGroup]) -> list[str]:
    """Flatten a plan into the declared gem names."""
    return [gem.name for group in plan for gem in group.gems]


def render_plan(plan: list[GemGroup]) -> str:
    """Render a whole plan as Gemfile text."""
    text = ""
    for group in plan:
        block = group.render()
        # Top-level gems after a group block start on a fresh line.
        if not group.groups and text:
            block = "\n" + block
        text += block
    return text


def append_plan(gemfile: Path, plan: list[GemGroup]) -> str:
    """Append *plan* to *gemfile* and return the text that was added."""
    current = gemfile.read_text(encoding="utf-8")
    addition = render_plan(plan)
    if current and not current.endswith("\n"):
        addition = "\n" + addition
    gemfile.write_text(current + addition, encoding="utf-8")
    return addition
