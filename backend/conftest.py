# Ensure 'backend/' is on sys.path so 'import fitstudio' and 'import tests.*'
# work even when pytest is started from inside backend/.
from pathlib import Path
import sys

_BACKEND_ROOT = Path(__file__).resolve().parent
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

# alembic's env.py only runs under the alembic CLI
collect_ignore_glob = [
    "alembic/*",
]
