"""
Module manifest retrieval and validation.

A manifest is the package's JSON descriptor. The pipeline only relies on two
of its fields:
- `languages`: [{"lang": ..., "name": ..., "path": ...}], one of which must
  be the base language
- `download`: URL of the package ZIP
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from magicl10n.config import BASE_LANGUAGE_CODE
from magicl10n.exceptions import UpstreamError, ValidationError
from magicl10n.logger import get_logger

logger = get_logger(__name__)

STAGE = "manifest"


@dataclass(frozen=True)
class LanguageDescriptor:
    """Where a language's string table lives inside the package."""
    language_code: str
    display_name: str
    relative_source_path: str

    @classmethod
    def from_manifest_entry(cls, entry: Dict[str, Any]) -> "LanguageDescriptor":
        return cls(
            language_code=entry.get("lang", ""),
            display_name=entry.get("name", ""),
            relative_source_path=entry.get("path", ""),
        )

    def to_manifest_entry(self) -> Dict[str, str]:
        return {
            "lang": self.language_code,
            "name": self.display_name,
            "path": self.relative_source_path,
        }


def get_language_descriptors(manifest: Dict[str, Any]) -> List[LanguageDescriptor]:
    return [
        LanguageDescriptor.from_manifest_entry(entry)
        for entry in manifest.get("languages") or []
        if isinstance(entry, dict)
    ]


def get_base_descriptor(manifest: Dict[str, Any], base_code: str = BASE_LANGUAGE_CODE) -> Optional[LanguageDescriptor]:
    for descriptor in get_language_descriptors(manifest):
        if descriptor.language_code == base_code:
            return descriptor
    return None


def validate_manifest(manifest: Any, base_code: str = BASE_LANGUAGE_CODE):
    """
    Validate the parts of a manifest the pipeline depends on.

    Raises:
        ValidationError: If languages, the base language or the download URL is missing
    """
    if not isinstance(manifest, dict):
        raise ValidationError("Provided manifest must be a JSON object")

    languages = manifest.get("languages")
    if not isinstance(languages, list) or not languages:
        raise ValidationError("Provided manifest must specify at least one language")

    base = get_base_descriptor(manifest, base_code)
    if base is None:
        raise ValidationError(
            f"Language code {base_code} must be provided in the manifest languages",
            code="base_language_missing",
            details={"base_language": base_code},
        )
    if not base.relative_source_path:
        raise ValidationError(f"Base language {base_code} must specify a path")

    download = manifest.get("download")
    if not isinstance(download, str) or not download.strip():
        raise ValidationError("Provided manifest must specify a download URL")


class ManifestRetriever:
    """Fetch a manifest over HTTP."""

    def __init__(self, http_client: Optional[httpx.Client] = None, timeout: float = 5.0,
                 max_bytes: int = 8388608):
        self.http_client = http_client
        self.timeout = timeout
        self.max_bytes = max_bytes

    def retrieve(self, manifest_url: str) -> Dict[str, Any]:
        """
        Get the manifest as parsed JSON.

        Raises:
            UpstreamError: If the manifest cannot be downloaded
            ValidationError: If the response is not valid JSON
        """
        logger.info(f"Retrieving manifest from {manifest_url}")

        try:
            if self.http_client is not None:
                response = self.http_client.get(manifest_url, timeout=self.timeout, follow_redirects=True)
            else:
                with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
                    response = client.get(manifest_url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(
                f'Could not retrieve manifest from "{manifest_url}" ({e.response.status_code})',
                stage=STAGE,
            )
        except httpx.HTTPError as e:
            raise UpstreamError(f'Could not retrieve manifest from "{manifest_url}" - {e}', stage=STAGE)

        if len(response.content) > self.max_bytes:
            raise ValidationError(f"Provided manifest exceeds {self.max_bytes} bytes")

        try:
            manifest = json.loads(response.text)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Provided manifest is not valid JSON: {e}")

        logger.debug(f"Manifest languages: {manifest.get('languages') if isinstance(manifest, dict) else None}")
        return manifest
