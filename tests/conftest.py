from __future__ import annotations

import os

import pytest


@pytest.fixture(autouse=True)
def _clean_diald_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("DIALD_"):
            monkeypatch.delenv(key, raising=False)
