import sys

from jarcount.cli import main

sys.exit(main())
