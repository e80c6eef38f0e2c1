# =============================================================================
# Mailbox Entry Point for `python -m mailbox_tui`
# =============================================================================

import sys

from mailbox_tui.app import main

if __name__ == "__main__":
    sys.exit(main())
