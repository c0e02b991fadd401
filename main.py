"""
Entrypoint: send today's BCSE trading snapshot to the Telegram chat
"""

import sys

from stockbot.app import main


if __name__ == "__main__":
    sys.exit(main())
