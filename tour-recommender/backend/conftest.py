import sys
from pathlib import Path

import pytest


# Ensure backend/src is on sys.path for tests so that imports like `services.*` and `config` work.
ROOT = Path(__file__).resolve().parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

_CREDENTIAL_VARS = ("KTO_API_KEY", "API_KEY", "GEMINI_API_KEY")


@pytest.fixture(autouse=True)
def _no_real_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer keys from the shell out of the tests."""
    for name in _CREDENTIAL_VARS:
        monkeypatch.delenv(name, raising=False)
