"""
Prompt template loading.

The template file is stat'ed on every call; the cached text is only reused
while the file's mtime and size are unchanged, so callers always see what is
currently on disk.
"""

import os
import logging
from typing import Optional, Tuple

from .errors import PromptLoadError

logger = logging.getLogger(__name__)


def _read_prompt(path: str) -> str:
    """Read a prompt text file."""
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


class PromptLoader:
    def __init__(self, path: str):
        self.path = path
        self._cached: Optional[Tuple[Tuple[int, int], str]] = None

    def load(self) -> str:
        try:
            st = os.stat(self.path)
            signature = (st.st_mtime_ns, st.st_size)
            cached = self._cached
            if cached is not None and cached[0] == signature:
                return cached[1]
            text = _read_prompt(self.path)
        except (OSError, UnicodeDecodeError) as e:
            self._cached = None
            logger.error(f"Failed to read prompt template {self.path}: {e}")
            raise PromptLoadError(f"failed to read {self.path}: {e}") from e

        self._cached = (signature, text)
        logger.debug(f"Loaded prompt template {self.path} ({len(text)} chars)")
        return text

    def resolve(self, custom_prompt: Optional[str]) -> str:
        """Use the request's custom prompt when given, else the file template."""
        if custom_prompt:
            return custom_prompt
        return self.load()
