"""
Allow running the batch job as a module: python -m domain_watch
"""

import sys

from domain_watch.change_monitor.service import main

if __name__ == "__main__":
    sys.exit(main())
