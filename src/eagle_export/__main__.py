"""Allow running as ``python -m eagle_export``."""

import sys

from eagle_export.cli import main

sys.exit(main())
