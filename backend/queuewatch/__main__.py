import sys

from queuewatch.cli import main

sys.exit(main())
