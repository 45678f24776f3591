"""Allow running as python -m reflector."""

import sys

from .main import main

if __name__ == "__main__":
    sys.exit(main())
