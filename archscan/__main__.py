import sys

from archscan.cli import main

sys.exit(main())
