import os
import sys
from pathlib import Path

# Settings are re-read on every load_settings() call in the test environment
os.environ["ENVIRONMENT"] = "test"
sys.path.insert(0, str(Path(__file__).parent))
