# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Shared test setup: cheap bcrypt rounds, set before settings are imported."""

import os

os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")
