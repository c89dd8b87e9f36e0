import sys

from pywham.cli import main

sys.exit(main())
