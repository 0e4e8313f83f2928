import sys

from capital_gains.cli import main

sys.exit(main())
