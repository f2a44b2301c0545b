"""The rails-prepper application template.

Each ``*_setup`` method wires one gem into the application.  They are plain,
ordered procedures over ``AppActions``; the only branching is on the user's
answers.
"""

from __future__ import annotations

import textwrap

from prepper.scaffolder.actions import AppActions
from prepper.scaffolder.answers import Answers
from prepper.scaffolder.gemfile import GemGroup, build_gem_plan
from prepper.utils import CommandError, say

RSPEC_REQUIRE_ANCHOR = "require 'rspec/rails'\n"
RSPEC_CONFIGURE_ANCHOR = "RSpec.configure do |config|\n"
ROUTES_ANCHOR = "Rails.application.routes.draw do\n"
BODY_ANCHOR = "<body>\n"
APPLICATION_CONTROLLER_ANCHOR = "class ApplicationController < ActionController::Base\n"

RAILS_HELPER = "spec/rails_helper.rb"

BULLET_SNIPPET = (
    "\n"
    "  if Bullet.enable?\n"
    "    config.before(:each) do\n"
    "      Bullet.start_request\n"
    "    end\n"
    "\n"
    "    config.after(:each) do\n"
    "      Bullet.perform_out_of_channel_notifications if Bullet.notification?\n"
    "      Bullet.end_request\n"
    "    end\n"
    "  end\n"
    "\n"
)

FLASH_SNIPPET = (
    '    <p class="notice"><%= notice %></p>\n'
    '    <p class="alert"><%= alert %></p>\n'
    "\n"
)

PAPER_TRAIL_INITIALIZER = textwrap.dedent(
    """
    PaperTrail.config.enabled = true
    PaperTrail.config.has_paper_trail_defaults = {
      on: %i[create update destroy]
    }
    PaperTrail.config.version_limit = 3
    """
)

PAPER_TRAIL_WHODUNNIT = "  before_action :set_paper_trail_whodunnit\n\n"

SIMPLECOV_SNIPPET = "\nrequire 'simplecov'\nSimpleCov.start 'rails'\n\n"


class Recipe:
    """Ordered setup procedures for one application."""

    def __init__(
        self,
        actions: AppActions,
        answers: Answers,
        app_name: str,
        formatter_command: str = "rubocop --auto-correct --cache true --format fuubar",
    ) -> None:
        self.actions = actions
        self.answers = answers
        self.app_name = app_name
        self.formatter_command = formatter_command

    # -- Questions ---------------------------------------------------------

    def ask_questions(self) -> None:
        """Ask every feature question up front so later steps never prompt."""
        for key in ("activeadmin", "api", "devise", "sidekiq"):
            self.answers.get(key)

    # -- Gemfile -----------------------------------------------------------

    def add_gems(self) -> list[GemGroup]:
        plan = build_gem_plan(self.answers)
        self.actions.add_gems(plan)
        return plan

    # -- Setup steps -------------------------------------------------------

    def activeadmin_setup(self) -> None:
        # https://activeadmin.info/0-installation.html#setting-up-active-admin
        if not self.answers.activeadmin:
            return

        options = ["--use_webpacker"]
        if not self.answers.devise:
            options.append("--skip-users")

        self.actions.generate(f"active_admin:install {' '.join(options)}")

    def bullet_setup(self) -> None:
        # https://github.com/flyerhzm/bullet
        self.actions.generate("bullet:install")
        self.actions.insert_into_file(RAILS_HELPER, BULLET_SNIPPET, after=RSPEC_CONFIGURE_ANCHOR)

    def database_cleaner_setup(self) -> None:
        # https://github.com/DatabaseCleaner/database_cleaner
        self.actions.copy_file("spec/supports/database_cleaner.rb", force=True)
        self.actions.insert_into_file(
            RAILS_HELPER,
            "require 'spec/supports/database_cleaner'\n",
            after=RSPEC_REQUIRE_ANCHOR,
        )

    def devise_setup(self) -> None:
        # https://github.com/heartcombo/devise#starting-with-rails
        if not self.answers.devise:
            return

        self.actions.generate("devise:install")
        self.actions.environment(
            "config.action_mailer.default_url_options = { host: 'localhost', port: 3000 }",
            env="development",
        )
        self.actions.generate("devise User")

        self.actions.insert_into_file(
            "config/routes.rb", "  root to: 'home#index'\n\n", after=ROUTES_ANCHOR
        )
        self.actions.insert_into_file(
            "app/views/layouts/application.html.erb", FLASH_SNIPPET, after=BODY_ANCHOR
        )

        self.actions.copy_file("config/initializers/devise.rb", force=True)

    def factory_bot_setup(self) -> None:
        # https://github.com/thoughtbot/factory_bot_rails
        self.actions.copy_file("spec/supports/factory_bot.rb", force=True)
        self.actions.insert_into_file(
            RAILS_HELPER,
            "require 'spec/supports/factory_bot'\n",
            after=RSPEC_REQUIRE_ANCHOR,
        )

    def paper_trail_setup(self) -> None:
        # https://github.com/paper-trail-gem/paper_trail
        if not self.answers.paper_trail:
            return

        self.actions.generate("paper_trail:install [--with-changes]")
        self.actions.initializer("paper_trail.rb", PAPER_TRAIL_INITIALIZER)
        self.actions.insert_into_file(
            "app/controllers/application_controller.rb",
            PAPER_TRAIL_WHODUNNIT,
            after=APPLICATION_CONTROLLER_ANCHOR,
        )
        self.actions.insert_into_file(
            RAILS_HELPER,
            "require 'paper_trail/frameworks/rspec'\n",
            after=RSPEC_REQUIRE_ANCHOR,
        )

    def pry_rails_setup(self) -> None:
        # https://github.com/rweng/pry-rails
        self.actions.copy_file(".pryrc", force=True)

    def rubocop_setup(self) -> None:
        # https://github.com/rubocop/rubocop
        self.actions.copy_file(".rubocop.yml", force=True)

    def rspec_setup(self) -> None:
        # https://github.com/rspec/rspec-rails
        self.actions.run("rm -rf test")
        self.actions.generate("rspec:install")

    def rswag_setup(self) -> None:
        # https://github.com/rswag/rswag#getting-started
        if not self.answers.api:
            return

        self.actions.generate("rswag:api:install")
        self.actions.generate("rswag:ui:install")

        self.actions.run("RAILS_ENV=test rails g rswag:specs:install")

        self.actions.run("mv ./config/initializers/rswag-ui.rb ./config/initializers/rswag_ui.rb")
        self.actions.copy_file("config/initializers/rswag_api.rb", force=True)

    def shoulda_matchers_setup(self) -> None:
        # https://github.com/thoughtbot/shoulda-matchers#rspec
        self.actions.copy_file("spec/supports/shoulda_matchers.rb", force=True)
        self.actions.insert_into_file(
            RAILS_HELPER,
            "require 'spec/supports/shoulda_matchers'\n",
            after=RSPEC_REQUIRE_ANCHOR,
        )

    def simplecov_setup(self) -> None:
        # https://github.com/simplecov-ruby/simplecov
        self.actions.insert_into_file(
            RAILS_HELPER, SIMPLECOV_SNIPPET, before=RSPEC_CONFIGURE_ANCHOR
        )
        self.actions.append_to_file(".gitignore", "\n/coverage/\n")

    def set_application_name(self) -> None:
        self.actions.environment(
            "config.application_name = Rails.application.class.module_parent_name"
        )
        say("You can change application name inside: ./config/application.rb")

    def run_setup(self) -> None:
        # Spring is optional in newer apps; a missing binary is not fatal.
        self.actions.run("spring stop", abort_on_failure=False)

        self.devise_setup()
        self.activeadmin_setup()
        self.rspec_setup()
        self.rubocop_setup()
        self.bullet_setup()
        self.pry_rails_setup()
        self.paper_trail_setup()
        self.shoulda_matchers_setup()
        self.rswag_setup()
        self.factory_bot_setup()
        self.database_cleaner_setup()
        self.simplecov_setup()

        self.actions.copy_file("app/channels/application_cable/connection.rb", force=True)
        self.actions.template("config/cable.yml", force=True)
        self.actions.copy_file("config/puma.rb", force=True)

    # -- Wrap-up -----------------------------------------------------------

    def clean_up(self) -> None:
        # The formatter exits non-zero when offenses remain after correcting.
        self.actions.run(self.formatter_command, abort_on_failure=False)

    def generate_secret_key(self) -> str:
        return self.actions.run("openssl rand -hex 64")

    def overview(self) -> None:
        say()
        if self.answers.activeadmin:
            say("ActiveAdmin installed!", "green")
        if self.answers.api:
            say("API tools installed!", "green")
        if self.answers.devise:
            say("Devise installed!", "green")
        if self.answers.sidekiq:
            say("Sidekiq installed!", "green")
        say()
        say("rails-prepper app template successfully applied!", "blue")
        say()
        say("To get started with your new app:", "green")
        say(f"  cd {self.app_name}")
        say()
        say("  # Update config/database.yml with your database credentials")
        say()
        say("  rails db:create db:migrate")
        say("  rails g active_admin:install # Generate admin dashboards")

    def commit_to_git(self, message: str | None = None, amend: bool = False) -> bool:
        """Commit the whole tree; returns ``True`` if a commit was made.

        Does nothing when the user declined committing.  A failing commit
        (e.g. ``user.email`` not configured) is reported, not raised.
        """
        if not self.answers.commit:
            return False

        self.actions.git("init")
        self.actions.git("add", ".")
        try:
            if amend:
                self.actions.git("commit", "--amend", "--no-edit")
            else:
                self.actions.git("commit", "-m", message or "Initial commit")
        except CommandError as exc:
            say(str(exc), "red")
            return False
        return True
