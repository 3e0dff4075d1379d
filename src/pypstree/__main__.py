"""Allow ``python -m pypstree``."""

import sys

from pypstree.app import main

sys.exit(main())
