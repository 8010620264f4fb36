"""
Language code mappings and utilities.

Two code spaces meet here:
- Translation service codes (ISO 639-1 plus a few BCP 47 variants such as
  'zh-TW'), used when submitting batch jobs.
- Package codes, the codes the module ecosystem uses in manifest
  `languages` entries and file names ('cn' for Simplified Chinese,
  'pt-BR' for Brazilian Portuguese).

Language JSON File Naming Convention:
The package code determines the JSON filename of a generated language file.
For example:
- Service code 'fr' maps to package code 'fr' and filename 'fr.json'
- Service code 'zh' maps to package code 'cn' and filename 'cn.json'
- Service code 'pt' maps to package code 'pt-BR' and filename 'pt-BR.json'
"""

from dataclasses import dataclass
from typing import Optional, Dict, List


class UnknownLanguageError(LookupError):
    """A language code has no entry in TARGET_LANGUAGES."""


@dataclass(frozen=True)
class TargetLanguage:
    """A language the pipeline can translate into."""
    code: str          # translation service code
    package_code: str  # module ecosystem code
    name: str          # display name written into the manifest


TARGET_LANGUAGES = [
    TargetLanguage('ar', 'ar', 'Arabic'),
    TargetLanguage('ca', 'ca', 'Català'),
    TargetLanguage('zh', 'cn', '中文 (Chinese)'),
    TargetLanguage('zh-TW', 'zh-tw', 'Chinese (Traditional)'),
    TargetLanguage('cs', 'cs', 'Čeština'),
    TargetLanguage('en', 'en', 'English'),
    TargetLanguage('fi', 'fi', 'Finnish'),
    TargetLanguage('fr', 'fr', 'Français'),
    TargetLanguage('de', 'de', 'Deutsch (German)'),
    TargetLanguage('it', 'it', 'Italian'),
    TargetLanguage('ja', 'ja', '日本語 (Japanese)'),
    TargetLanguage('ko', 'ko', '한국어 (Korean)'),
    TargetLanguage('pl', 'pl', 'Polski'),
    TargetLanguage('pt', 'pt-BR', 'Português (Brasil)'),
    TargetLanguage('ru', 'ru', 'русский (Russian)'),
    TargetLanguage('es', 'es', 'Español'),
    TargetLanguage('sv', 'sv', 'Swedish'),
]

_BY_SERVICE_CODE: Dict[str, TargetLanguage] = {lang.code: lang for lang in TARGET_LANGUAGES}
_BY_PACKAGE_CODE: Dict[str, TargetLanguage] = {lang.package_code: lang for lang in TARGET_LANGUAGES}


def get_target_language(service_code: str) -> Optional[TargetLanguage]:
    """Look up a target language by translation service code."""
    return _BY_SERVICE_CODE.get(service_code)


def get_target_language_by_package_code(package_code: str) -> Optional[TargetLanguage]:
    """Look up a target language by package code."""
    return _BY_PACKAGE_CODE.get(package_code)


def to_package_code(service_code: str) -> str:
    """
    Map a translation service code to the package ecosystem's code.

    Raises:
        UnknownLanguageError: If the code has no entry in TARGET_LANGUAGES.

    Examples:
        >>> to_package_code('zh')
        'cn'
        >>> to_package_code('fr')
        'fr'
    """
    target = get_target_language(service_code)
    if target is None:
        raise UnknownLanguageError(f"No target language entry for service code '{service_code}'")
    return target.package_code


def get_display_name(package_code: str) -> str:
    """
    Get the manifest display name for a package code.

    Raises:
        UnknownLanguageError: If the code has no entry in TARGET_LANGUAGES.
    """
    target = get_target_language_by_package_code(package_code)
    if target is None:
        raise UnknownLanguageError(f"No target language entry for language code '{package_code}'")
    return target.name


def get_target_language_codes() -> List[str]:
    """Get all known translation service codes."""
    return [lang.code for lang in TARGET_LANGUAGES]


def get_language_file_name(language_code: str) -> str:
    """
    Get the expected filename for a language.

    Examples:
        >>> get_language_file_name('en')
        'en.json'
        >>> get_language_file_name('pt-BR')
        'pt-BR.json'
    """
    return f"{language_code}.json"
