import sys
from pathlib import Path

import pytest

# Ensure repo_root/src is available on sys.path before any tests import project modules
REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from codeshaker.config_loader import ShakerConfig


@pytest.fixture
def config():
    # stripping is covered by its own tests; keep it out of unrelated ones
    return ShakerConfig(features={"dangerous_code_remover": False})
