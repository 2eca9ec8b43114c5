from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
SRC_ROOT = ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))


@pytest.fixture(autouse=True)
def _reset_frp_settings() -> None:
    from frp.config import FRPSettings, override_frp_settings

    override_frp_settings(FRPSettings())
    yield
    override_frp_settings(None)
