import sys

from py_oas_generator.cli import main

sys.exit(main())
