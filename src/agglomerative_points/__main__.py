import sys

from agglomerative_points.cli import main

sys.exit(main())
