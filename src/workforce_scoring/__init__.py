"""workforce-scoring: burnout scoring, leave conflicts and smart task assignment."""

__version__ = "0.1.0"

import os
import pathlib

DEFAULT_DB_PATH = os.path.join(
    os.path.expanduser("~"), ".workforce-scoring", "workforce.db"
)

PACKAGE_DIR = pathlib.Path(__file__).parent
