"""Remove files and empty directories."""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence


def _remove(path: str) -> None:
    if os.path.isdir(path) and not os.path.islink(path):
        os.rmdir(path)
    else:
        os.unlink(path)


def main(argv: Sequence[str] | None = None) -> int:
    """Remove each named path, stopping at the first one that cannot be removed."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print("Usage: rm files...", file=sys.stderr)
        return 1
    for path in args:
        try:
            _remove(path)
        except OSError:
            print(f"rm: {path} failed to delete", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())