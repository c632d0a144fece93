"""Console entrypoint.

The CLI is implemented in `kesy_oracle.oracle.main`.
"""

from __future__ import annotations

from kesy_oracle.oracle.main import main

__all__ = ["main"]


if __name__ == "__main__":
    raise SystemExit(main())
