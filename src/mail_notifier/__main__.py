"""Allow ``python -m mail_notifier``."""

import sys

from mail_notifier.cli import main

sys.exit(main())
