#!/usr/bin/env python3
"""
Cash drawer command line.

Usage:
    python3 scripts/drawer_cli.py open --user <uuid> --amount 50000
    python3 scripts/drawer_cli.py close --session <uuid> --cash 170000 --invoices invoices.json
    python3 scripts/drawer_cli.py history

See ``drawer_services.cli`` for every option.
"""

import sys
from pathlib import Path

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from drawer_services.cli import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
