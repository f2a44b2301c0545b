"""rails-prepper scaffolder -- the template and the actions it is written against.

Quick usage::

    from prepper.scaffolder import AppActions, Answers, Recipe

    actions = AppActions("./my_app")
    recipe = Recipe(actions, Answers(assume_yes=True), app_name="my_app")
    recipe.run_setup()
"""

from prepper.scaffolder.actions import AppActions, TemplateFileNotFound
from prepper.scaffolder.answers import Answers
from prepper.scaffolder.gemfile import Gem, GemGroup, build_gem_plan
from prepper.scaffolder.recipe import Recipe
from prepper.scaffolder.source import TemplateSource, resolve_source
from prepper.scaffolder.templates import TemplateRenderer

__all__ = [
    "AppActions",
    "Answers",
    "Gem",
    "GemGroup",
    "Recipe",
    "TemplateFileNotFound",
    "TemplateRenderer",
    "TemplateSource",
    "build_gem_plan",
    "resolve_source",
]
