"""
Package module - Module manifests and package archives

This module provides:
- manifest: Manifest retrieval, validation and language descriptors
- archive: Package download and language file extraction
"""

from magicl10n.package.manifest import (
    LanguageDescriptor,
    ManifestRetriever,
    get_language_descriptors,
    validate_manifest,
)
from magicl10n.package.archive import (
    ExtractedLanguages,
    PackageSource,
    extract_language_tables,
)
