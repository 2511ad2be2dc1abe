import sys

from fogview.main import main

sys.exit(main())
