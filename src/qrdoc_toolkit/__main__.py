import sys

from qrdoc_toolkit.cli import main

sys.exit(main())
