import sys

from fnmdesk.cli import main

sys.exit(main())
