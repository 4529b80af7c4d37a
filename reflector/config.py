"""Transform configuration (pure data, no business logic)."""

from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass
from typing import Any, Mapping

from . import constants


@dataclass(frozen=True)
class TransformConfig:
    """Groups source-transform configuration."""

    exclude: tuple[str, ...] = ()
    module: str = constants.DEFAULT_RUNTIME_MODULE
    namespace: str = constants.DEFAULT_NAMESPACE
    language: str = ""
    prelude: bool = True

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TransformConfig:
        """Build a config from a plugin-style options dictionary."""
        unknown = set(data) - {"exclude", "module", "namespace", "language", "prelude"}
        if unknown:
            raise ValueError(f"Unknown transform options: {sorted(unknown)}")
        exclude = data.get("exclude") or ()
        if isinstance(exclude, str):
            exclude = (exclude,)
        return cls(
            exclude=tuple(exclude),
            module=data.get("module", constants.DEFAULT_RUNTIME_MODULE),
            namespace=data.get("namespace", constants.DEFAULT_NAMESPACE),
            language=data.get("language", ""),
            prelude=bool(data.get("prelude", True)),
        )

    def is_excluded(self, path: str) -> bool:
        """True when *path* matches one of the exclusion globs.

        Patterns and the path are both made absolute first, so relative
        patterns are taken relative to the working directory.
        """
        if not path:
            return False
        target = os.path.abspath(path)
        return any(
            fnmatch.fnmatchcase(target, os.path.abspath(pattern))
            for pattern in self.exclude
        )
