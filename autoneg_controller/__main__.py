"""Allow ``python -m autoneg_controller``."""

import sys

from .controller import main

sys.exit(main())
