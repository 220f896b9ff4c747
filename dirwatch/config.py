"""Configuration for a dirwatch run."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .errors import ConfigurationError

TARGET_PATH_ENV = "DIRWATCH_TARGET_PATH"


@dataclass(frozen=True)
class WatchOptions:
    """Options that control a watch session."""

    root: Path
    recursive: bool = True
    log_path: Optional[Path] = None
    verbose: bool = False


def load_options(
    directory: str | Path | None = None,
    *,
    recursive: bool = True,
    log_path: Path | None = None,
    verbose: bool = False,
    environ: Mapping[str, str] | None = None,
) -> WatchOptions:
    """Build :class:`WatchOptions`, taking the root from *environ* when *directory* is not given."""

    env = os.environ if environ is None else environ
    raw = str(directory) if directory is not None else env.get(TARGET_PATH_ENV, "")
    if not raw.strip():
        raise ConfigurationError(
            f"Path to watch is not specified! Pass a directory or set {TARGET_PATH_ENV}"
        )
    return WatchOptions(
        root=Path(raw.strip()).expanduser(),
        recursive=recursive,
        log_path=log_path.expanduser() if log_path else None,
        verbose=verbose,
    )


__all__ = ["TARGET_PATH_ENV", "WatchOptions", "load_options"]
