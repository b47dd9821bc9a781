"""Variable expansion for source descriptors.

Substitutes ``${NAME}`` placeholders. Lookup order:
1. Explicit variables passed to the expander
2. Environment variables (os.environ)
3. A dotenv file, if one was given (cached after first read)

Unresolved placeholders are left in place literally.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

from dotenv import dotenv_values

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")


class VariablesExpander(Protocol):
    """Expands placeholders inside a string."""

    def expand(self, value: str) -> str: ...


class SystemVariablesExpander:
    """Expands ``${NAME}`` from explicit variables, the environment and a dotenv file."""

    def __init__(
        self,
        variables: Mapping[str, str] | None = None,
        dotenv_path: str | Path | None = None,
    ) -> None:
        self._variables = dict(variables or {})
        self._dotenv_path = Path(dotenv_path) if dotenv_path else None
        self._dotenv: dict[str, str | None] | None = None

    def _dotenv_values(self) -> dict[str, str | None]:
        if self._dotenv is None:
            if self._dotenv_path and self._dotenv_path.exists():
                self._dotenv = dotenv_values(self._dotenv_path)
            else:
                self._dotenv = {}
        return self._dotenv

    def lookup(self, name: str) -> str | None:
        """Find the value of a single variable, or None."""
        if name in self._variables:
            return self._variables[name]
        value = os.environ.get(name)
        if value is not None:
            return value
        return self._dotenv_values().get(name)

    def expand(self, value: str) -> str:
        def replace_var(match: re.Match[str]) -> str:
            found = self.lookup(match.group(1))
            return match.group(0) if found is None else found

        return _PLACEHOLDER.sub(replace_var, value)

    def clear_cache(self) -> None:
        """Forget cached dotenv values so the file is read again."""
        self._dotenv = None
