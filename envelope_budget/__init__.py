"""Top-level package for the envelope budget engine.

This file makes the directory a Python package and exposes
convenient names.  The primary modules are:

* ``models`` - envelope, income source and allocation records
* ``lib.budgets`` - waterfall allocation, gap analysis, income variance
  reconciliation and zero-based balance validation
* ``lib.analytics`` - pandas reports built from engine results
* ``visualization`` - functions that generate Plotly figures

Every calculation is pure: callers pass an explicit ``as_of`` date and
receive new result objects, nothing is persisted.
"""

import logging

from . import models  # noqa: F401  # re-exported for convenience
from . import visualization  # noqa: F401  # re-exported for convenience
from .lib import budgets  # noqa: F401  # re-exported for convenience

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = ["models", "budgets", "visualization"]
