"""Entry point.

Works both as `python -m dist_deployer` and when the file is run directly
(some IDEs launch the script path, where relative imports have no parent
package).
"""

import sys
from pathlib import Path

if __package__ is None or __package__ == "":
    # run as a script -> put src/ on sys.path
    sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
    from dist_deployer.app import main
else:
    from .app import main

if __name__ == "__main__":
    raise SystemExit(main())
