"""
Parallel data export.

Builds CSV files of (base text, target text) pairs from existing language
files, for use as custom terminology/parallel data with the translation
service. Only keys present in both tables are exported.
"""

import csv
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from magicl10n.config import BASE_LANGUAGE_CODE
from magicl10n.language_codes import TARGET_LANGUAGES
from magicl10n.logger import get_logger
from magicl10n.translation.utils import to_string_table

logger = get_logger(__name__)

PARALLEL_DATA_SUFFIX = "_parallel_data.csv"


def build_rows(base_table: Dict[str, Any], target_table: Dict[str, Any],
               base_code: str, target_code: str) -> List[List[str]]:
    """Header row [base_code, target_code] followed by one row per shared key, in base order."""
    rows = [[base_code, target_code]]
    for key, base_text in base_table.items():
        if key not in target_table:
            continue
        rows.append([_cell(base_text), _cell(target_table[key])])
    return rows


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def write_rows(path: Path, rows: List[List[str]]):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f, quoting=csv.QUOTE_ALL)
        writer.writerows(rows)


def load_table(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8-sig") as f:
        content = json.load(f)
    if not isinstance(content, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return to_string_table(content)


def export_pair(base_file: Path, target_file: Path, target_code: str,
                output_dir: Path, base_code: str = BASE_LANGUAGE_CODE) -> Path:
    """Export one parallel data CSV; returns its path."""
    rows = build_rows(load_table(base_file), load_table(target_file), base_code, target_code)
    output = Path(output_dir) / f"{target_code}{PARALLEL_DATA_SUFFIX}"
    write_rows(output, rows)
    logger.info(f"Wrote {len(rows) - 1} parallel rows to {output}")
    return output


def export_directory(files_dir: Path, output_dir: Optional[Path] = None,
                     base_code: str = BASE_LANGUAGE_CODE) -> List[Path]:
    """
    Export parallel data for every known language file found in `files_dir`.

    Language files are looked up as `<package code>.json` next to the base file.
    Missing target files are logged and skipped.
    """
    files_dir = Path(files_dir)
    output_dir = Path(output_dir) if output_dir else files_dir / "generated"
    base_file = files_dir / f"{base_code}.json"
    if not base_file.exists():
        raise FileNotFoundError(f"Cannot find base language file {base_file}")

    written = []
    for language in TARGET_LANGUAGES:
        if language.package_code == base_code:
            continue
        target_file = files_dir / f"{language.package_code}.json"
        if not target_file.exists():
            logger.warning(f"Cannot find target language file {target_file}")
            continue
        written.append(export_pair(base_file, target_file, language.package_code, output_dir, base_code))

    return written
