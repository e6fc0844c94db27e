import sys

from presiterm.cli import main

sys.exit(main())
