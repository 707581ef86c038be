"""Allow running as ``python -m unistt``."""

import sys

from unistt.cli import main

sys.exit(main())
