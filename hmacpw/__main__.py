import sys

from hmacpw.cli import main

sys.exit(main())
