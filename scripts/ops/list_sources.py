#!/usr/bin/env python3
"""
Convenience wrapper for ``dex-providers sources list``.

Operators can run ``python scripts/ops/list_sources.py --auth authorized`` on a
host where the console script is not on ``PATH``. Arguments are forwarded to
the CLI command unchanged.
"""

from __future__ import annotations

import sys

from typer.main import get_command

from dex_data_providers.cli.main import app


def main(argv: list[str] | None = None) -> int:
    command = get_command(app)
    args = ["sources", "list", *(argv if argv is not None else sys.argv[1:])]
    try:
        command.main(args=args, prog_name="dex-providers", standalone_mode=True)
    except SystemExit as exc:
        return int(exc.code or 0)
    return 0


if __name__ == "__main__":
    sys.exit(main())
