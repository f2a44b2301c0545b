"""Tests for the application template (prepper.scaffolder.recipe).

Covers:
- Gated setup steps run if and only if their answer is yes
- Snippets land next to the right anchors
- Commit handling: skipped when declined, failures reported not raised
- run_setup ordering and the files it copies
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from prepper.scaffolder.actions import AppActions
from prepper.scaffolder.recipe import BULLET_SNIPPET, Recipe

pytestmark = pytest.mark.unit


@pytest.fixture
def build_recipe(rails_app: Path):
    def _build(answers) -> Recipe:
        return Recipe(AppActions(rails_app), answers, app_name="shop_app")
    return _build


def _mock_recipe(answers) -> Recipe:
    return Recipe(MagicMock(spec=AppActions), answers, app_name="shop_app")


def _generated(recorder) -> list[str]:
    return [c for c in recorder.commands if c.startswith("bin/rails generate ")]


# ---------------------------------------------------------------------------
# Gated steps
# ---------------------------------------------------------------------------


class TestGatedSteps:
    @pytest.mark.parametrize("enabled", [True, False])
    def test_devise_setup(self, enabled, make_answers):
        recipe = _mock_recipe(make_answers(devise=enabled))
        recipe.devise_setup()
        assert recipe.actions.generate.called is enabled

    @pytest.mark.parametrize("enabled", [True, False])
    def test_activeadmin_setup(self, enabled, make_answers):
        recipe = _mock_recipe(make_answers(activeadmin=enabled))
        recipe.activeadmin_setup()
        assert recipe.actions.generate.called is enabled

    @pytest.mark.parametrize("enabled", [True, False])
    def test_rswag_setup(self, enabled, make_answers):
        recipe = _mock_recipe(make_answers(api=enabled))
        recipe.rswag_setup()
        assert recipe.actions.generate.called is enabled
        assert recipe.actions.copy_file.called is enabled

    def test_activeadmin_skips_users_without_devise(self, make_answers):
        recipe = _mock_recipe(make_answers(activeadmin=True))
        recipe.activeadmin_setup()
        recipe.actions.generate.assert_called_once_with(
            "active_admin:install --use_webpacker --skip-users"
        )

    def test_activeadmin_with_devise_keeps_users(self, make_answers):
        recipe = _mock_recipe(make_answers(activeadmin=True, devise=True))
        recipe.activeadmin_setup()
        recipe.actions.generate.assert_called_once_with("active_admin:install --use_webpacker")

    def test_run_setup_all_no(self, build_recipe, all_no, recorder):
        build_recipe(all_no).run_setup()
        assert _generated(recorder) == [
            "bin/rails generate rspec:install",
            "bin/rails generate bullet:install",
        ]
        assert not recorder.ran("bin/rails generate paper_trail")

    @pytest.mark.parametrize(
        "activeadmin, devise", [(True, False), (False, True), (False, False)]
    )
    def test_paper_trail_needs_admin_users(self, activeadmin, devise, make_answers):
        recipe = _mock_recipe(make_answers(activeadmin=activeadmin, devise=devise))
        recipe.paper_trail_setup()
        recipe.actions.generate.assert_not_called()
        recipe.actions.initializer.assert_not_called()
        recipe.actions.insert_into_file.assert_not_called()

    def test_run_setup_all_yes(self, build_recipe, all_yes, recorder):
        build_recipe(all_yes).run_setup()
        assert _generated(recorder) == [
            "bin/rails generate devise:install",
            "bin/rails generate devise User",
            "bin/rails generate active_admin:install --use_webpacker",
            "bin/rails generate rspec:install",
            "bin/rails generate bullet:install",
            "bin/rails generate paper_trail:install [--with-changes]",
            "bin/rails generate rswag:api:install",
            "bin/rails generate rswag:ui:install",
        ]
        assert "RAILS_ENV=test rails g rswag:specs:install" in recorder.commands


# ---------------------------------------------------------------------------
# Snippets
# ---------------------------------------------------------------------------


class TestSnippets:
    def test_devise_edits(self, build_recipe, make_answers, rails_app, recorder):
        build_recipe(make_answers(devise=True)).devise_setup()

        routes = (rails_app / "config/routes.rb").read_text()
        assert routes.startswith("Rails.application.routes.draw do\n  root to: 'home#index'\n\n")
        layout = (rails_app / "app/views/layouts/application.html.erb").read_text()
        assert '<body>\n    <p class="notice"><%= notice %></p>\n' in layout
        dev = (rails_app / "config/environments/development.rb").read_text()
        assert "default_url_options = { host: 'localhost', port: 3000 }" in dev
        assert (rails_app / "config/initializers/devise.rb").is_file()

    def test_rails_helper_after_run_setup(self, build_recipe, all_no, rails_app, recorder):
        build_recipe(all_no).run_setup()
        helper = (rails_app / "spec/rails_helper.rb").read_text()

        for required in (
            "require 'spec/supports/database_cleaner'\n",
            "require 'spec/supports/factory_bot'\n",
            "require 'spec/supports/shoulda_matchers'\n",
        ):
            assert helper.count(required) == 1
            assert helper.index(required) > helper.index("require 'rspec/rails'\n")
        assert "paper_trail" not in helper

        assert BULLET_SNIPPET in helper
        assert helper.index("SimpleCov.start 'rails'") < helper.index("RSpec.configure")
        assert helper.index("Bullet.start_request") > helper.index("RSpec.configure")

    def test_paper_trail(self, build_recipe, make_answers, rails_app, recorder):
        build_recipe(make_answers(activeadmin=True, devise=True)).paper_trail_setup()
        controller = (rails_app / "app/controllers/application_controller.rb").read_text()
        assert "  before_action :set_paper_trail_whodunnit\n" in controller
        initializer = (rails_app / "config/initializers/paper_trail.rb").read_text()
        assert "PaperTrail.config.version_limit = 3" in initializer

    def test_simplecov_ignores_coverage(self, build_recipe, all_no, rails_app):
        build_recipe(all_no).simplecov_setup()
        assert (rails_app / ".gitignore").read_text().endswith("\n/coverage/\n")

    def test_run_setup_copies_static_files(self, build_recipe, all_no, rails_app, recorder):
        build_recipe(all_no).run_setup()
        for relative in (
            ".rubocop.yml",
            ".pryrc",
            "spec/supports/database_cleaner.rb",
            "spec/supports/factory_bot.rb",
            "spec/supports/shoulda_matchers.rb",
            "app/channels/application_cable/connection.rb",
            "config/cable.yml",
            "config/puma.rb",
        ):
            assert (rails_app / relative).is_file(), relative
        assert not (rails_app / "config/initializers/rswag_api.rb").exists()

    def test_set_application_name(self, build_recipe, all_no, rails_app):
        build_recipe(all_no).set_application_name()
        app_rb = (rails_app / "config/application.rb").read_text()
        assert "    config.application_name = Rails.application.class.module_parent_name\n" in app_rb

    def test_spring_stop_failure_is_tolerated(self, build_recipe, all_no, recorder):
        recorder.failures["spring"] = (127, "spring: not found")
        build_recipe(all_no).run_setup()
        assert recorder.commands[0] == "spring stop"


# ---------------------------------------------------------------------------
# Git
# ---------------------------------------------------------------------------


class TestCommitToGit:
    def test_skipped_when_declined(self, build_recipe, make_answers, recorder):
        recipe = build_recipe(make_answers(commit=False))
        assert recipe.commit_to_git(message="Initial commit") is False
        assert recipe.commit_to_git(amend=True) is False
        assert not recorder.ran("git")

    def test_initial_commit(self, build_recipe, make_answers, recorder):
        recipe = build_recipe(make_answers(commit=True))
        assert recipe.commit_to_git(message="Initial commit") is True
        assert recorder.commands == ["git init", "git add .", "git commit -m Initial commit"]

    def test_amend(self, build_recipe, make_answers, recorder):
        build_recipe(make_answers(commit=True)).commit_to_git(amend=True)
        assert recorder.commands[-1] == "git commit --amend --no-edit"

    def test_failing_commit_is_reported_not_raised(self, build_recipe, make_answers, recorder):
        recorder.failures["git commit"] = (128, "Please tell me who you are.")
        recipe = build_recipe(make_answers(commit=True))
        assert recipe.commit_to_git(message="Initial commit") is False
        assert recipe.commit_to_git(amend=True) is False

    def test_failing_git_init_propagates(self, build_recipe, make_answers, recorder):
        from prepper.utils import CommandError

        recorder.failures["git init"] = (1, "boom")
        with pytest.raises(CommandError):
            build_recipe(make_answers(commit=True)).commit_to_git(message="Initial commit")


# ---------------------------------------------------------------------------
# Wrap-up
# ---------------------------------------------------------------------------


class TestWrapUp:
    def test_clean_up_runs_formatter_without_aborting(self, build_recipe, all_no, recorder):
        recorder.failures["rubocop"] = (1, "offenses remain")
        build_recipe(all_no).clean_up()
        assert recorder.commands == ["rubocop --auto-correct --cache true --format fuubar"]

    def test_generate_secret_key(self, build_recipe, all_no, recorder):
        recorder.stdout["openssl rand"] = "f" * 128
        assert build_recipe(all_no).generate_secret_key() == "f" * 128

    def test_overview_mentions_selected_features(self, build_recipe, make_answers, capsys):
        build_recipe(make_answers(api=True, sidekiq=True)).overview()
        out = capsys.readouterr().out
        assert "API tools installed!" in out
        assert "Sidekiq installed!" in out
        assert "Devise installed!" not in out
        assert "ActiveAdmin installed!" not in out
        assert "cd shop_app" in out

    def test_ask_questions_order(self):
        from prepper.scaffolder.answers import Answers

        ask = MagicMock(return_value=False)
        _mock_recipe(Answers(ask=ask)).ask_questions()
        assert [c.args[0] for c in ask.call_args_list] == [
            "Install ActiveAdmin? (y/n)",
            "Need API? (y/n)",
            "Install Devise? (y/n)",
            "Do you want to use sidekiq? (y/n)",
        ]
