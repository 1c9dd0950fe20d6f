"""Allow ``python -m safeticket_sync``."""

import sys

from .cli import main

sys.exit(main())
