"""
Allow running domainctl as a module: python -m domain_watch.cli
"""

import sys
from .domainctl import main

if __name__ == "__main__":
    sys.exit(main())
