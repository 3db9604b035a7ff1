"""Allow ``python -m onedrive_versions``."""

import sys

from onedrive_versions.cli import main

sys.exit(main())
