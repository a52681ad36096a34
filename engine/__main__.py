"""
Ledger CLI 진입점

사용법:
    python -m engine --help
"""

import sys

from engine.cli import main

if __name__ == "__main__":
    sys.exit(main())
