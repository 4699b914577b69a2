"""Allow running as ``python -m rcpctl``."""

import sys

from rcpctl.cli.main import main

sys.exit(main())
