import sys

from rusp.main import main

sys.exit(main())
