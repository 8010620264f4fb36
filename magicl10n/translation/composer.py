"""
Languages manifest block composer.

Produces the `languages` array a package author pastes back into their
manifest once the generated language files are added to the package.
"""

from typing import Any, Dict, List

from magicl10n.config import BASE_LANGUAGE_CODE
from magicl10n.language_codes import UnknownLanguageError, get_display_name, get_language_file_name
from magicl10n.logger import get_logger
from magicl10n.package.manifest import LanguageDescriptor, get_base_descriptor, get_language_descriptors

logger = get_logger(__name__)


def _base_directory(descriptor: LanguageDescriptor) -> str:
    directory, _, _ = descriptor.relative_source_path.rpartition("/")
    return directory


def generate(manifest: Dict[str, Any], translated_tables: Dict[str, Dict[str, str]],
             base_code: str = BASE_LANGUAGE_CODE) -> List[LanguageDescriptor]:
    """
    Generate the language descriptors for the translated package.

    The base descriptor comes first, unchanged. Languages the manifest already
    declared and that were not regenerated follow unchanged, then one new
    descriptor per translated language, placed next to the base file.

    Args:
        manifest: The original manifest
        translated_tables: Translated string tables keyed by package code

    Raises:
        UnknownLanguageError: If the base descriptor is missing, or a translated
            language code has no display name in the lookup table
    """
    base = get_base_descriptor(manifest, base_code)
    if base is None:
        raise UnknownLanguageError("Cannot find base language within manifest `languages` section.")

    directory = _base_directory(base)
    descriptors = [base]

    for existing in get_language_descriptors(manifest):
        if existing.language_code == base_code or existing.language_code in translated_tables:
            continue
        descriptors.append(existing)

    for language_code in translated_tables:
        if language_code == base_code:
            continue

        file_name = get_language_file_name(language_code)
        descriptors.append(LanguageDescriptor(
            language_code=language_code,
            display_name=get_display_name(language_code),
            relative_source_path=f"{directory}/{file_name}" if directory else file_name,
        ))

    logger.debug(f"Composed {len(descriptors)} language descriptors")
    return descriptors


def to_manifest_block(descriptors: List[LanguageDescriptor]) -> List[Dict[str, str]]:
    """Serialize descriptors in the manifest's own `languages` shape."""
    return [descriptor.to_manifest_entry() for descriptor in descriptors]
