"""Shared pytest setup for the treeaction unit suites.

Test directories carry no ``__init__.py``, so the checkout itself is put on
``sys.path`` to import ``treeaction`` without an editable install.
"""

from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = str(Path(__file__).resolve().parents[1])

if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)
