"""Shared pytest fixtures for the rails-prepper test suite.

Provides reusable fixtures for:
- A skeleton Rails application as ``rails new`` leaves it
- A recording stand-in for subprocess execution
- Answer presets for the common yes/no combinations
"""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from prepper.config import AnswerPresets
from prepper.scaffolder.answers import Answers


# ---------------------------------------------------------------------------
# Skeleton Rails application
# ---------------------------------------------------------------------------

RAILS_APP_FILES: dict[str, str] = {
    "Gemfile": textwrap.dedent(
        """\
        source "https://rubygems.org"
        git_source(:github) { |repo| "https://github.com/#{repo}.git" }

        ruby "2.7.4"

        gem "rails", "~> 6.1.4"
        gem "pg", "~> 1.1"
        gem "puma", "~> 5.0"
        """
    ),
    ".gitignore": "/log/*\n/tmp/*\n",
    "config/application.rb": textwrap.dedent(
        """\
        require_relative "boot"

        require "rails/all"

        Bundler.require(*Rails.groups)

        module ShopApp
          class Application < Rails::Application
            config.load_defaults 6.1
          end
        end
        """
    ),
    "config/environments/development.rb": textwrap.dedent(
        """\
        require "active_support/core_ext/integer/time"

        Rails.application.configure do
          config.cache_classes = false
        end
        """
    ),
    "config/routes.rb": textwrap.dedent(
        """\
        Rails.application.routes.draw do
          # For details on the DSL available within this file, see https://guides.rubyonrails.org/routing.html
        end
        """
    ),
    "app/views/layouts/application.html.erb": textwrap.dedent(
        """\
        <!DOCTYPE html>
        <html>
          <head>
            <title>ShopApp</title>
          </head>

          <body>
            <%= yield %>
          </body>
        </html>
        """
    ),
    "app/controllers/application_controller.rb": (
        "class ApplicationController < ActionController::Base\nend\n"
    ),
    # Normally created by ``rspec:install``; present up front because the
    # generators are not really executed in tests.
    "spec/rails_helper.rb": textwrap.dedent(
        """\
        require 'spec_helper'
        ENV['RAILS_ENV'] ||= 'test'
        require File.expand_path('../config/environment', __dir__)
        abort("The Rails environment is running in production mode!") if Rails.env.production?
        require 'rspec/rails'

        RSpec.configure do |config|
          config.use_transactional_fixtures = true
        end
        """
    ),
}


@pytest.fixture
def rails_app(tmp_path: Path) -> Path:
    """A freshly generated Rails application named ``shop_app``."""
    app_root = tmp_path / "shop_app"
    for relative, content in RAILS_APP_FILES.items():
        target = app_root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return app_root


# ---------------------------------------------------------------------------
# Subprocess recording
# ---------------------------------------------------------------------------


class CommandRecorder:
    """Stands in for ``run_command`` and remembers every invocation.

    ``failures`` maps a command prefix (string) to the ``(returncode, stderr)``
    returned when an invocation starts with it.
    """

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.failures: dict[str, tuple[int, str]] = {}
        self.stdout: dict[str, str] = {}

    def __call__(self, cmd, cwd=None, timeout=600, capture=True, env=None):
        line = cmd if isinstance(cmd, str) else " ".join(cmd)
        self.calls.append({"cmd": line, "cwd": cwd, "env": env})
        for prefix, (returncode, stderr) in self.failures.items():
            if line.startswith(prefix):
                return (returncode, "", stderr)
        for prefix, stdout in self.stdout.items():
            if line.startswith(prefix):
                return (0, stdout, "")
        return (0, "", "")

    @property
    def commands(self) -> list[str]:
        return [call["cmd"] for call in self.calls]

    def ran(self, prefix: str) -> bool:
        return any(cmd.startswith(prefix) for cmd in self.commands)


@pytest.fixture
def recorder() -> CommandRecorder:
    """Patch command execution in the actions layer with a recorder."""
    rec = CommandRecorder()
    with patch("prepper.scaffolder.actions.run_command", side_effect=rec):
        yield rec


# ---------------------------------------------------------------------------
# Answers
# ---------------------------------------------------------------------------


def _make_answers(**values: bool) -> Answers:
    """Answers with every question preset; unspecified questions are ``False``."""
    presets = {name: values.get(name, False) for name in AnswerPresets.model_fields}
    return Answers(AnswerPresets(**presets))


@pytest.fixture
def all_yes() -> Answers:
    return _make_answers(api=True, activeadmin=True, devise=True, sidekiq=True, commit=True)


@pytest.fixture
def all_no() -> Answers:
    return _make_answers()


@pytest.fixture
def make_answers():
    """Factory: ``make_answers(api=True, devise=True)``."""
    return _make_answers
