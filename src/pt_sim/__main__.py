"""Allow ``python -m pt_sim``."""

import sys

from pt_sim.cli import main

sys.exit(main())
