"""Test configuration ensuring local package import when editable install not active.

If users invoke `pytest` outside the project's virtualenv, we still add the project
root to sys.path so `import jiraworklog` works.
"""

from __future__ import annotations

import os
import sys
import time
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture
def amsterdam_time():
    """Run the test with the process local timezone set to Europe/Amsterdam."""
    if not hasattr(time, "tzset") or not Path("/usr/share/zoneinfo/Europe/Amsterdam").exists():
        pytest.skip("needs tzset and the system zoneinfo database")
    original = os.environ.get("TZ")
    os.environ["TZ"] = "Europe/Amsterdam"
    time.tzset()
    yield
    if original is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = original
    time.tzset()
