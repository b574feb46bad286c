import sys

from shopreports.cli import main

sys.exit(main())
