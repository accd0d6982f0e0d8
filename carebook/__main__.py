import sys

from carebook.cli import main

sys.exit(main())
