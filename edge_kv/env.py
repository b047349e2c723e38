"""Configuration lookup across the environment surfaces a runtime provides."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path

from dotenv import dotenv_values


logger = logging.getLogger(__name__)

DOTENV_PATH_VARIABLE = "EDGE_KV_DOTENV"

Surface = Callable[[], Mapping[str, str | None]]

_MISSING = object()


def process_environment() -> Mapping[str, str | None]:
    """Return the process environment."""
    return os.environ


def dotenv_file(path: str | os.PathLike[str] | None = None) -> Surface:
    """Return a surface reading values from a dotenv file.

    Without an explicit path, ``$EDGE_KV_DOTENV`` or ``./.env`` is used. A
    missing file yields no values.
    """

    def load() -> Mapping[str, str | None]:
        target = Path(path or os.environ.get(DOTENV_PATH_VARIABLE) or ".env")
        if not target.is_file():
            return {}
        return dotenv_values(target)

    return load


class EnvironmentResolver:
    """Resolve configuration names against an ordered list of surfaces.

    The first surface holding a value for a name wins. Every outcome, hit or
    miss, is memoized per name for the lifetime of the resolver, so later
    changes to a surface are not observed.

    Parameters
    ----------
    surfaces
        Callables returning a mapping, consulted in order. Defaults to the
        process environment followed by the dotenv file.
    extra
        Mapping injected by an embedding runtime, consulted after ``surfaces``.
    """

    def __init__(
        self,
        surfaces: list[Surface] | None = None,
        *,
        extra: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__()
        self._surfaces: list[Surface] = list(surfaces) if surfaces is not None else [process_environment, dotenv_file()]
        if extra is not None:
            self._surfaces.append(lambda: extra)
        self._cache: dict[str, object] = {}

    def get_value(self, name: str, default: str = "") -> str:
        """Return the value of ``name``, or ``default`` when no surface has it."""
        cached = self._cache.get(name, _MISSING)
        if cached is _MISSING:
            cached = self._lookup(name)
            self._cache[name] = cached
        if cached is None:
            return default
        return str(cached)

    def _lookup(self, name: str) -> str | None:
        for surface in self._surfaces:
            try:
                value = surface().get(name)
            except Exception:
                logger.warning(
                    "Error reading %s from environment surface %s",
                    name,
                    getattr(surface, "__qualname__", surface),
                    exc_info=True,
                )
                continue
            if value is not None:
                return value
        return None


_default_resolver = EnvironmentResolver()


def default_resolver() -> EnvironmentResolver:
    """Return the process-wide resolver."""
    return _default_resolver


def getenv(name: str, default: str = "") -> str:
    """Look up ``name`` through the process-wide resolver."""
    return _default_resolver.get_value(name, default)
