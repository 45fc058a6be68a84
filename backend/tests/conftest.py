import os
import sys
from pathlib import Path


# Ensure `backend/` is on sys.path so tests can import local modules
# like `geo.*`, `layers.*`, and `main`.
BACKEND_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_ROOT))

# Keep the test run from writing a telemetry DB under the repo; telemetry tests opt in.
os.environ.setdefault("FOOTPRINTS_TELEMETRY", "0")
