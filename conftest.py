"""Root pytest configuration: keep the repo root importable."""

import sys
from pathlib import Path

root = str(Path(__file__).parent.absolute())
if root not in sys.path:
    sys.path.insert(0, root)
