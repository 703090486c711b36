import sys

from kvmanage.cli import main

sys.exit(main())
