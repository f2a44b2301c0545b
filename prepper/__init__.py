"""rails-prepper -- applies a standard toolset to a freshly generated Rails app.

Quick usage::

    from prepper import Config, Prepper

    config = Config(app_path=Path("./my_app"), assume_yes=True)
    Prepper(config).run()
"""

from prepper.config import Config
from prepper.pipeline import Prepper

__version__ = "0.1.0"

__all__ = [
    "Config",
    "Prepper",
]
