import sys

from manifest_viewer.cli import main

sys.exit(main())
