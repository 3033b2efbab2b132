from __future__ import annotations

import sys

from pgseed.cli import main


sys.exit(main())
