import sys

from ezdim.cli import main

sys.exit(main())
