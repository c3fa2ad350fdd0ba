"""Allow ``python -m actions_dash``."""

import sys

from actions_dash.cli import main

if __name__ == "__main__":
    sys.exit(main())
