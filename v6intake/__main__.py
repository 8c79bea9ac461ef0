import sys

from v6intake.cli.main import main

sys.exit(main())
