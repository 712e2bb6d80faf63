"""
main.py
-------
Entry point: ``python main.py schema --source ... --target ...``.
"""
from __future__ import annotations

import sys

from dbdiff.cli import main

if __name__ == "__main__":
    sys.exit(main())
