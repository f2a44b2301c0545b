"""Memoised yes/no answers that drive the template."""

from __future__ import annotations

from typing import Callable

from rich.prompt import Confirm

from prepper.config import AnswerPresets
from prepper.utils import console

QUESTIONS: dict[str, str] = {
    "api": "Need API? (y/n)",
    "activeadmin": "Install ActiveAdmin? (y/n)",
    "devise": "Install Devise? (y/n)",
    "sidekiq": "Do you want to use sidekiq? (y/n)",
    "commit": "Initial commit?",
}


def _confirm(question: str) -> bool:
    return Confirm.ask(question, console=console, default=False)


class Answers:
    """Answers to the template questions, each asked at most once.

    An answer comes from, in order: the cache, the presets, ``assume_yes``,
    and finally the interactive prompt.  Once known it never changes for
    the rest of the run, including a ``False`` answer.
    """

    def __init__(
        self,
        presets: AnswerPresets | None = None,
        assume_yes: bool = False,
        ask: Callable[[str], bool] | None = None,
    ) -> None:
        self.presets = presets or AnswerPresets()
        self.assume_yes = assume_yes
        self._ask = ask or _confirm
        self._cache: dict[str, bool] = {}

    def get(self, key: str) -> bool:
        if key not in QUESTIONS:
            raise KeyError(f"Unknown question: {key}")
        if key in self._cache:
            return self._cache[key]

        preset = getattr(self.presets, key)
        if preset is not None:
            value = preset
        elif self.assume_yes:
            value = True
        else:
            value = bool(self._ask(QUESTIONS[key]))
        self._cache[key] = value
        return value

    @property
    def api(self) -> bool:
        return self.get("api")

    @property
    def activeadmin(self) -> bool:
        return self.get("activeadmin")

    @property
    def devise(self) -> bool:
        return self.get("devise")

    @property
    def sidekiq(self) -> bool:
        return self.get("sidekiq")

    @property
    def commit(self) -> bool:
        return self.get("commit")

    @property
    def paper_trail(self) -> bool:
        """Version tracking is only wired up for admin users."""
        return self.activeadmin and self.devise

    def answered(self) -> dict[str, bool]:
        """Return the answers collected so far."""
        return dict(self._cache)
