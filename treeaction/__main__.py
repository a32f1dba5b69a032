"""Module entrypoint for ``python -m treeaction``.

All argument parsing and runtime setup happen in ``treeaction.cli``.
"""

from .cli import main


if __name__ == "__main__":
    raise SystemExit(main())
