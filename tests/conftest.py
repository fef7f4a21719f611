"""Test configuration and fixtures."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from tests.helpers import build_ghost_db


@pytest.fixture
def ghost_db_bytes(tmp_path: Path) -> Callable[..., bytes]:
    """Factory returning the bytes of a freshly built Ghost database."""
    counter = iter(range(1_000_000))

    def factory(**kwargs: Any) -> bytes:
        db_path = tmp_path / f"ghost-{next(counter)}.db"
        build_ghost_db(db_path, **kwargs)
        return db_path.read_bytes()

    return factory


@pytest.fixture
def extract_root(tmp_path: Path) -> Path:
    root = tmp_path / "site" / "content" / "blog"
    root.mkdir(parents=True)
    return root.resolve()
