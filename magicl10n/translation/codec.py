"""
Batch document codec.

The batch translation service only understands HTML, so a string table is
carried through it as markup:

    <span translate="no">greeting.hello</span><p>Hello <span translate="no">{name}</span>!</p>

    <span translate="no">SEPARATOR</span>

The no-translate span protects both the string key and every `{...}`
interpolation placeholder. Nothing outside this module sees the markup.
"""

import html
import re
from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional, Tuple

from magicl10n.config import BATCH_NEWLINE_SEPARATOR
from magicl10n.exceptions import ValidationError
from magicl10n.language_codes import to_package_code
from magicl10n.logger import get_logger
from magicl10n.translation.models import TranslationJob
from magicl10n.translation.utils import is_translatable

logger = get_logger(__name__)

NO_TRANSLATE_OPEN = '<span translate="no">'
NO_TRANSLATE_CLOSE = '</span>'
PARAGRAPH_OPEN = '<p>'
PARAGRAPH_CLOSE = '</p>'
RECORD_SEPARATOR = f"\n\n{BATCH_NEWLINE_SEPARATOR}\n\n"

PLACEHOLDER_PATTERN = re.compile(r'\{[^}]+\}')

# The translator may re-serialize markup, so match spans loosely
NO_TRANSLATE_SPAN_PATTERN = re.compile(
    r'<span\s+translate\s*=\s*["\']no["\']\s*>(.*?)</span\s*>',
    re.DOTALL | re.IGNORECASE,
)
SEPARATOR_PATTERN = re.compile(
    r'<span\s+translate\s*=\s*["\']no["\']\s*>\s*SEPARATOR\s*</span\s*>',
    re.IGNORECASE,
)


class BatchRecord(NamedTuple):
    key: str
    marked_up_text: str


@dataclass
class BatchDocument:
    """Ordered (key, marked-up text) records for one target language."""
    language_code: str = ""
    records: List[BatchRecord] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.records

    def keys(self) -> List[str]:
        return [record.key for record in self.records]

    def render(self) -> str:
        """Serialize into the text blob uploaded as the job input."""
        return "".join(
            f"{NO_TRANSLATE_OPEN}{html.escape(record.key, quote=False)}{NO_TRANSLATE_CLOSE}"
            f"{PARAGRAPH_OPEN}{record.marked_up_text}{PARAGRAPH_CLOSE}"
            f"{RECORD_SEPARATOR}"
            for record in self.records
        )

    def __len__(self) -> int:
        return len(self.records)


def protect_placeholders(text: str) -> str:
    """
    Wrap every `{...}` placeholder in a no-translate span.

    Example:
        >>> protect_placeholders("Hello {name}!")
        'Hello <span translate="no">{name}</span>!'
    """
    return PLACEHOLDER_PATTERN.sub(
        lambda match: f"{NO_TRANSLATE_OPEN}{match.group(0)}{NO_TRANSLATE_CLOSE}",
        text,
    )


def _reject_sentinel(key: str, text: str):
    for label, value in (("key", key), ("value", text)):
        if SEPARATOR_PATTERN.search(value):
            raise ValidationError(
                f"String {label} '{key}' contains the reserved batch separator",
                code="reserved_separator",
                details={"key": key},
            )


def _already_translated(target_table: Dict[str, object], key: str) -> bool:
    existing = target_table.get(key)
    return isinstance(existing, str) and bool(existing.strip())


def encode_batch(
    base_table: Dict[str, object],
    target_table: Optional[Dict[str, object]] = None,
    language_code: str = "",
) -> BatchDocument:
    """
    Encode the untranslated part of a base string table into a batch document.

    Records follow the base table's insertion order. Keys the target table
    already has a non-blank translation for are left out, as are falsy keys
    and empty or non-string values. Keys and text are HTML-escaped, so decoding
    restores them exactly.

    Args:
        base_table: Flat base-language string table
        target_table: Flat string table already present for the target language
        language_code: Target language the document is built for

    Returns:
        BatchDocument; empty when nothing needs translating

    Raises:
        ValidationError: If a key or value contains the batch separator
    """
    target_table = target_table or {}
    document = BatchDocument(language_code=language_code)

    for key, text in base_table.items():
        if not is_translatable(key, text):
            continue
        if _already_translated(target_table, key):
            continue

        _reject_sentinel(key, text)
        document.records.append(BatchRecord(key, protect_placeholders(html.escape(text, quote=False))))

    logger.debug(
        f"Encoded {len(document)} of {len(base_table)} strings for language '{language_code or '?'}'"
    )
    return document


def _strip_paragraph(text: str) -> str:
    if text.startswith(PARAGRAPH_OPEN):
        text = text[len(PARAGRAPH_OPEN):]
    if text.endswith(PARAGRAPH_CLOSE):
        text = text[:-len(PARAGRAPH_CLOSE)]
    return text.strip()


def decode_record(record: str) -> Optional[Tuple[str, str]]:
    """
    Decode one record of a translated batch document.

    Returns:
        (key, translated_text), or None when the record carries no key
        (trailing padding the service appends, or malformed output)
    """
    record = record.strip()

    key_match = NO_TRANSLATE_SPAN_PATTERN.search(record)
    if not key_match:
        return None

    key = html.unescape(key_match.group(1)).strip()
    if not key:
        return None

    # Drop the key span, then unwrap the placeholder spans everywhere else
    text = (record[:key_match.start()] + record[key_match.end():]).strip()
    text = NO_TRANSLATE_SPAN_PATTERN.sub(lambda match: match.group(1), text).strip()
    text = _strip_paragraph(text)
    text = html.unescape(text).strip()

    return key, text


def decode_batch(raw_output: str) -> Dict[str, str]:
    """
    Decode a translated batch document back into a flat string table.

    Malformed records are skipped rather than aborting the whole document.
    """
    table: Dict[str, str] = {}
    skipped = 0

    for record in SEPARATOR_PATTERN.split(raw_output or ""):
        decoded = decode_record(record)
        if decoded is None:
            if record.strip():
                skipped += 1
            continue
        key, text = decoded
        table[key] = text

    if skipped:
        logger.debug(f"Skipped {skipped} batch records without a string key")
    return table


def decode_job_output(
    job: TranslationJob,
    raw_output: str,
    translated_tables: Dict[str, Dict[str, str]],
) -> Dict[str, str]:
    """
    Decode a completed job's output into the shared translated tables.

    The partial table is stored under the package code of the job's
    target language (e.g. service code 'zh' is stored as 'cn').

    Raises:
        UnknownLanguageError: If the job's target language has no lookup entry
    """
    package_code = to_package_code(job.target_language_code)
    partial = decode_batch(raw_output)

    translated_tables.setdefault(package_code, {}).update(partial)
    logger.info(
        f"Decoded {len(partial)} strings for {package_code} (job {job.external_job_id})"
    )
    return partial
