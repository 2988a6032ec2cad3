import sys

from shorts_maker.cli import main

sys.exit(main())
