"""
Static templates written by the setup steps.

Templates are opaque text; nothing here parses them.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

_DATA_DIR = Path(__file__).parent
TEMPLATE_DIR = _DATA_DIR / "templates"


@lru_cache(maxsize=None)
def load_template(name: str) -> str:
    """Return the text of ``templates/<name>``.

    Raises:
        FileNotFoundError: If the template does not exist.
    """
    return (TEMPLATE_DIR / name).read_text(encoding="utf-8")
