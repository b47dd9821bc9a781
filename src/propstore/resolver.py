"""Source resolution: from descriptor string to byte stream.

A source descriptor is either a URL (``file:``, ``http:``, ``https:`` or anything
urllib can open), a bare filesystem path, or ``classpath:<path>`` meaning a
bundled resource located through a ResourceLoader.

Descriptors are expanded (``${NAME}``) before resolution. A source that does not
exist resolves to ``None``; that is never an error.
"""

from __future__ import annotations

import contextlib
import importlib.resources
import importlib.util
import io
import re
import sys
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import BinaryIO, Protocol

import httpx

from propstore.descriptor import CLASSPATH_SCHEME
from propstore.errors import LoadError, PropertiesSyntaxError
from propstore.expander import SystemVariablesExpander, VariablesExpander
from propstore.logging import get_logger
from propstore.parser import DEFAULT_ENCODING, load_properties

log = get_logger("resolver")

DEFAULT_HTTP_TIMEOUT = 10.0

# HTTP statuses meaning "no such source"
ABSENT_STATUSES = frozenset({404, 410})

_SCHEME = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*):")


class ResourceLoader(Protocol):
    """Finds bundled resources by slash-separated relative path."""

    def find(self, path: str) -> Traversable | None: ...


class DirectoryResourceLoader:
    """Looks resources up under a fixed list of root directories."""

    def __init__(self, *roots: str | Path) -> None:
        self._roots = [Path(root) for root in roots]

    def find(self, path: str) -> Traversable | None:
        relative = path.lstrip("/")
        for root in self._roots:
            candidate = root / relative
            if candidate.is_file():
                return candidate
        return None


class PackageResourceLoader:
    """Looks resources up inside importable packages, then along ``sys.path``.

    ``myapp/settings/Server.properties`` is first tried as resource
    ``Server.properties`` of package ``myapp.settings`` (which also covers zipped
    packages), then as a file relative to each search path directory.
    A dotted prefix that names a module rather than a package is never
    imported or used as a resource container.
    """

    def __init__(self, search_path: Sequence[str | Path] | None = None) -> None:
        self._search_path = search_path

    def find(self, path: str) -> Traversable | None:
        relative = path.lstrip("/")
        package, _, name = relative.rpartition("/")
        if package:
            resource = self._package_resource(package.replace("/", "."), name)
            if resource is not None:
                return resource

        search_path = sys.path if self._search_path is None else self._search_path
        for entry in search_path:
            root = Path(entry)
            if not root.is_dir():
                continue
            candidate = root / relative
            if candidate.is_file():
                return candidate
        return None

    @staticmethod
    def _package_resource(package: str, name: str) -> Traversable | None:
        parts = package.split(".")
        if not all(part.isidentifier() for part in parts):
            return None
        # Every dotted prefix must be a package
        for depth in range(1, len(parts) + 1):
            try:
                spec = importlib.util.find_spec(".".join(parts[:depth]))
            except (ImportError, ValueError):
                return None
            if spec is None or spec.submodule_search_locations is None:
                return None
        try:
            resource = importlib.resources.files(package).joinpath(name)
        except (ImportError, TypeError, ValueError):
            return None
        return resource if resource.is_file() else None


@dataclass(frozen=True)
class Source:
    """A source descriptor after variable expansion."""

    descriptor: str  # As declared
    location: str  # Expanded
    scheme: str  # Lower-case scheme; "file" for bare paths

    @property
    def path(self) -> str:
        """Scheme-specific part of the location."""
        prefix = f"{self.scheme}:"
        if self.location.lower().startswith(prefix):
            return self.location[len(prefix) :]
        return self.location


class SourceResolver:
    """Resolves source descriptors to binary streams.

    Args:
        expander: Expands ``${NAME}`` placeholders (default: SystemVariablesExpander).
        resource_loader: Locates ``classpath:`` resources (default: PackageResourceLoader).
        http_timeout: Timeout in seconds for HTTP sources.
        transport: Optional httpx transport, mainly for tests.
        encoding: Text encoding of properties documents.
    """

    def __init__(
        self,
        expander: VariablesExpander | None = None,
        resource_loader: ResourceLoader | None = None,
        *,
        http_timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
        encoding: str = DEFAULT_ENCODING,
    ) -> None:
        self.expander = expander or SystemVariablesExpander()
        self.resource_loader = resource_loader or PackageResourceLoader()
        self.http_timeout = http_timeout
        self.encoding = encoding
        self._transport = transport

    def resolve(self, descriptor: str) -> Source:
        """Expand a descriptor and work out its scheme."""
        location = self.expander.expand(descriptor)
        match = _SCHEME.match(location)
        # Single letters are Windows drive names, not schemes
        if match and len(match.group(1)) > 1:
            scheme = match.group(1).lower()
        else:
            scheme = "file"
        return Source(descriptor=descriptor, location=location, scheme=scheme)

    def http_client(self) -> httpx.Client:
        """Create a client for HTTP sources. Callers close it."""
        return httpx.Client(
            timeout=self.http_timeout,
            transport=self._transport,
            follow_redirects=True,
        )

    def find_resource(self, source: Source) -> Traversable | None:
        """Locate a ``classpath:`` source."""
        return self.resource_loader.find(source.path)

    @staticmethod
    def file_path(source: Source) -> Path:
        """Filesystem path of a ``file:`` URL or bare path."""
        if not source.location.lower().startswith("file:"):
            return Path(source.location)
        parsed = urllib.parse.urlparse(source.location)
        return Path(urllib.request.url2pathname(parsed.path))

    @contextlib.contextmanager
    def open(self, source: Source) -> Iterator[BinaryIO | None]:
        """Open a source for reading, yielding None if it does not exist.

        The stream is closed when the block exits, on success or error.
        """
        stream = self._open_stream(source)
        try:
            yield stream
        finally:
            if stream is not None:
                stream.close()

    def _open_stream(self, source: Source) -> BinaryIO | None:
        if source.scheme == CLASSPATH_SCHEME:
            resource = self.find_resource(source)
            if resource is None:
                return None
            return resource.open("rb")

        if source.scheme == "file":
            try:
                return self.file_path(source).open("rb")
            except FileNotFoundError:
                return None

        if source.scheme in ("http", "https"):
            with self.http_client() as client:
                response = client.get(source.location)
                if response.status_code in ABSENT_STATUSES:
                    return None
                response.raise_for_status()
                return io.BytesIO(response.content)

        try:
            return urllib.request.urlopen(source.location, timeout=self.http_timeout)
        except urllib.error.HTTPError as e:
            if e.code in ABSENT_STATUSES:
                e.close()
                return None
            raise

    def read(self, descriptor: str) -> dict[str, str] | None:
        """Resolve, open and parse a source.

        Returns:
            The parsed table, or None if the source does not exist.

        Raises:
            LoadError: If an existing source cannot be read or parsed.
        """
        source = self.resolve(descriptor)
        try:
            with self.open(source) as stream:
                if stream is None:
                    log.debug("Source absent: %s", source.location)
                    return None
                table = load_properties(stream, self.encoding)
        except (OSError, httpx.HTTPError, PropertiesSyntaxError, UnicodeDecodeError) as e:
            raise LoadError(f"Properties load failed: {e}", source=source.location) from e

        log.debug("Loaded %d properties from %s", len(table), source.location)
        return table
