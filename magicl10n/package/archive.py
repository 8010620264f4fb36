"""
Package archive download and language file extraction.
"""

import io
import json
import zipfile
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from magicl10n.exceptions import UpstreamError, ValidationError
from magicl10n.logger import get_logger
from magicl10n.package.manifest import LanguageDescriptor
from magicl10n.translation.utils import is_nested, to_string_table

logger = get_logger(__name__)

STAGE = "package"


@dataclass
class ExtractedLanguages:
    """String tables found in a package, keyed by package language code."""
    tables: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    nested: Dict[str, bool] = field(default_factory=dict)


class PackageSource:
    """Download package ZIPs and read entries out of them."""

    def __init__(self, http_client: Optional[httpx.Client] = None, timeout: float = 5.0,
                 max_bytes: int = 8388608):
        self.http_client = http_client
        self.timeout = timeout
        self.max_bytes = max_bytes

    def fetch(self, url: str) -> bytes:
        """
        Download a package archive, enforcing the size limit.

        Raises:
            UpstreamError: If the download fails or exceeds max_bytes
        """
        logger.info(f"Downloading package from {url}")
        try:
            if self.http_client is not None:
                return self._stream(self.http_client, url)
            with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
                return self._stream(client, url)
        except httpx.HTTPStatusError as e:
            raise UpstreamError(
                f'Could not retrieve package from "{url}" ({e.response.status_code})', stage=STAGE
            )
        except httpx.HTTPError as e:
            raise UpstreamError(f'Could not retrieve package from "{url}" - {e}', stage=STAGE)

    def _stream(self, client: httpx.Client, url: str) -> bytes:
        with client.stream("GET", url, timeout=self.timeout, follow_redirects=True) as response:
            response.raise_for_status()

            declared = response.headers.get("content-length")
            if declared and declared.isdigit() and int(declared) > self.max_bytes:
                raise self._too_large(url)

            buffer = bytearray()
            for chunk in response.iter_bytes():
                buffer.extend(chunk)
                if len(buffer) > self.max_bytes:
                    raise self._too_large(url)

        logger.info(f"Downloaded package ({len(buffer)} bytes)")
        return bytes(buffer)

    def _too_large(self, url: str) -> UpstreamError:
        return UpstreamError(
            f'Package at "{url}" exceeds the {self.max_bytes} byte limit',
            stage=STAGE,
            code="package_too_large",
            details={"max_bytes": self.max_bytes},
        )

    @staticmethod
    def _open(archive: bytes) -> zipfile.ZipFile:
        try:
            return zipfile.ZipFile(io.BytesIO(archive))
        except zipfile.BadZipFile as e:
            raise ValidationError(f"Package is not a valid ZIP archive: {e}")

    def list_entries(self, archive: bytes) -> List[Dict[str, Any]]:
        """List file entries as [{"path", "size"}]."""
        with self._open(archive) as zf:
            return [
                {"path": info.filename, "size": info.file_size}
                for info in zf.infolist()
                if not info.is_dir()
            ]

    def read_entry(self, archive: bytes, path: str) -> bytes:
        with self._open(archive) as zf:
            try:
                return zf.read(path)
            except KeyError:
                raise ValidationError(f"Package has no entry '{path}'")


def _match_entry(entries: List[str], relative_path: str) -> Optional[str]:
    """
    Resolve a manifest-relative path to an archive entry.

    Packages are often zipped with their own folder at the top, so a single
    leading directory is tolerated.
    """
    while relative_path.startswith("./"):
        relative_path = relative_path[2:]
    relative_path = relative_path.lstrip("/")
    if relative_path in entries:
        return relative_path
    for entry in entries:
        head, _, rest = entry.partition("/")
        if head and rest == relative_path:
            return entry
    return None


def extract_language_tables(
    source: PackageSource,
    archive: bytes,
    descriptors: List[LanguageDescriptor],
) -> ExtractedLanguages:
    """
    Read and flatten every declared language file present in the package.

    Declared languages whose file is missing are logged and skipped.

    Raises:
        ValidationError: If a language file is not a JSON object
    """
    entries = [entry["path"] for entry in source.list_entries(archive)]
    extracted = ExtractedLanguages()

    for descriptor in descriptors:
        entry = _match_entry(entries, descriptor.relative_source_path)
        if entry is None:
            logger.warning(
                f"Language file '{descriptor.relative_source_path}' ({descriptor.language_code}) not found in package"
            )
            continue

        raw = source.read_entry(archive, entry)
        try:
            content = json.loads(raw.decode("utf-8-sig"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ValidationError(f"Language file '{entry}' is not valid JSON: {e}")

        if not isinstance(content, dict):
            raise ValidationError(f"Language file '{entry}' must contain a JSON object")

        extracted.tables[descriptor.language_code] = to_string_table(content)
        extracted.nested[descriptor.language_code] = is_nested(content)
        logger.debug(f"Extracted {len(extracted.tables[descriptor.language_code])} strings from {entry}")

    return extracted
