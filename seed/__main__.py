import sys

from seed.seed import run

sys.exit(run())
