"""System prompts shipped as package data (see [tool.setuptools.package-data])."""

from functools import lru_cache
from importlib import resources


@lru_cache(maxsize=None)
def load_prompt(name: str) -> str:
    """Return prompts/<name>.txt, stripped. Read once per process."""
    return resources.files(__name__).joinpath(f"{name}.txt").read_text(encoding="utf-8").strip()
