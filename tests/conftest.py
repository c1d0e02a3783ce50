from __future__ import annotations

import sys
import textwrap
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for entry in (ROOT, ROOT / "src"):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


import pytest

from argtrim.config import RewriteSettings
from argtrim.rewrite.engine import RewriteEngine


@pytest.fixture
def rewrite():
    def _rewrite(source: str, **settings: object) -> str:
        engine = RewriteEngine(settings=RewriteSettings(**settings))
        return engine.rewrite_source(textwrap.dedent(source)).code

    return _rewrite


@pytest.fixture
def write_module():
    def _write(root: Path, relative: str, source: str) -> Path:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source), encoding="utf-8")
        return path

    return _write
