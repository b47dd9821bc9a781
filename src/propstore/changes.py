"""Change detection for configuration sources.

Answers "has this source changed since time T" from last-modified metadata:
file mtimes, HTTP ``Last-Modified`` headers, or the mtime of a classpath
resource that lives on the filesystem. Unknown modification times count as
unchanged, and so do failures while probing.
"""

from __future__ import annotations

import email.utils
import urllib.error
import urllib.request
from dataclasses import dataclass
from pathlib import Path

import httpx

from propstore.descriptor import CLASSPATH_SCHEME
from propstore.logging import get_logger
from propstore.resolver import ABSENT_STATUSES, Source, SourceResolver

log = get_logger("changes")


@dataclass(frozen=True)
class SourceStamp:
    """Existence and modification time of a source at probe time."""

    exists: bool
    last_modified: float | None = None  # Seconds since the epoch, None if unknown

    def changed_since(self, since: float) -> bool:
        """True only if the source exists and is known to be newer than ``since``."""
        return self.exists and self.last_modified is not None and self.last_modified > since


ABSENT = SourceStamp(exists=False)
UNKNOWN = SourceStamp(exists=True)


def parse_http_date(value: str | None) -> float | None:
    """Parse an RFC 7231 date header into a timestamp."""
    if not value:
        return None
    try:
        return email.utils.parsedate_to_datetime(value).timestamp()
    except (TypeError, ValueError):
        return None


class ChangeDetector:
    """Probes sources for their last-modified time."""

    def __init__(self, resolver: SourceResolver) -> None:
        self._resolver = resolver

    def probe(self, source: Source) -> SourceStamp:
        """Probe a source. Failures yield UNKNOWN (present, time unknown)."""
        try:
            return self._probe(source)
        except (OSError, httpx.HTTPError, ValueError) as e:
            log.debug("Cannot determine change time of %s: %s", source.location, e)
            return UNKNOWN

    def last_modified(self, source: Source) -> float | None:
        """Last-modified time of a source, or None if absent or unknown."""
        return self.probe(source).last_modified

    def changed_since(self, source: Source, since: float) -> bool:
        return self.probe(source).changed_since(since)

    def _probe(self, source: Source) -> SourceStamp:
        if source.scheme == CLASSPATH_SCHEME:
            resource = self._resolver.find_resource(source)
            if resource is None:
                return ABSENT
            if isinstance(resource, Path):
                return SourceStamp(exists=True, last_modified=resource.stat().st_mtime)
            # Zipped or otherwise virtual resource
            return UNKNOWN

        if source.scheme == "file":
            try:
                stat = self._resolver.file_path(source).stat()
            except FileNotFoundError:
                return ABSENT
            return SourceStamp(exists=True, last_modified=stat.st_mtime)

        if source.scheme in ("http", "https"):
            with self._resolver.http_client() as client:
                response = client.head(source.location)
            if response.status_code in ABSENT_STATUSES:
                return ABSENT
            response.raise_for_status()
            return SourceStamp(
                exists=True,
                last_modified=parse_http_date(response.headers.get("Last-Modified")),
            )

        try:
            with urllib.request.urlopen(
                source.location, timeout=self._resolver.http_timeout
            ) as response:
                header = response.headers.get("Last-Modified")
        except urllib.error.HTTPError as e:
            e.close()
            if e.code in ABSENT_STATUSES:
                return ABSENT
            raise
        return SourceStamp(exists=True, last_modified=parse_http_date(header))
