"""Download-once store for CGO dependency archives, keyed by URL filename."""

from __future__ import annotations

import http.client
import shutil
from collections.abc import Callable
from pathlib import Path
from typing import IO, Any
from urllib.parse import urlsplit
from urllib.request import urlopen

from gocross.errors import CacheError
from gocross.observability import BuildLogger

Opener = Callable[[str], Any]


def cache_filename(url: str) -> str:
    """Final path segment of *url*, the only identity a cache entry has."""
    path = urlsplit(url).path or url
    return path.rstrip("/").rsplit("/", 1)[-1]


class DependencyCache:
    def __init__(
        self,
        root: str | Path,
        logger: BuildLogger,
        *,
        opener: Opener = urlopen,
    ) -> None:
        self.root = Path(root)
        self.logger = logger
        self._opener = opener

    def path_for(self, url: str) -> Path:
        return self.root / cache_filename(url)

    def populate(self, dependencies: str) -> list[Path]:
        """Fetch every missing archive in *dependencies*; return the newly downloaded paths."""
        try:
            self.root.mkdir(mode=0o751, parents=True, exist_ok=True)
        except OSError as exc:
            raise CacheError(
                "Failed to create dependency cache.",
                hint="Point deps_cache at a writable directory.",
                context={"operation": "populate_cache", "path": str(self.root), "error": str(exc)},
            ) from exc

        downloaded: list[Path] = []
        for dep in dependencies.split():
            url = dep.strip()
            if not url:
                continue
            path = self.path_for(url)
            if path.exists():
                self.logger.printf("INFO: Dependency already cached: %s.", path)
                continue
            self.logger.printf("INFO: Downloading new dependency: %s...", url)
            self._download(url, path)
            self.logger.printf("INFO: New dependency cached: %s.", path)
            downloaded.append(path)
        return downloaded

    def _download(self, url: str, path: Path) -> None:
        # A failed copy leaves the partially written file in place.
        context = {"operation": "populate_cache", "url": url, "path": str(path)}
        try:
            out: IO[bytes] = path.open("wb")
        except OSError as exc:
            raise CacheError(
                "Failed to create dependency file.",
                context={**context, "error": str(exc)},
            ) from exc
        with out:
            try:
                response = self._opener(url)
            except (OSError, ValueError, http.client.HTTPException) as exc:
                raise CacheError(
                    "Failed to retrieve dependency.",
                    hint="Check the dependency URL and network connectivity.",
                    context={**context, "error": str(exc)},
                ) from exc
            with response:
                try:
                    shutil.copyfileobj(response, out)
                except (OSError, http.client.HTTPException) as exc:
                    raise CacheError(
                        "Failed to download dependency.",
                        hint="Delete the truncated archive from the cache before retrying.",
                        context={**context, "error": str(exc)},
                    ) from exc
