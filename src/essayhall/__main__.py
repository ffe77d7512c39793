import sys

from essayhall.cli.main import main

sys.exit(main())
