"""
Translation module - Batch translation workflow

This module provides:
- utils: String table flattening and rebuilding
- codec: Batch document encoding and decoding
- models: Translation job records and status mapping
- tracker: TranslationJobTracker, submission and polling of batch jobs
- composer: Languages manifest block generation
"""

from magicl10n.translation.models import JobStatus, TranslationJob
from magicl10n.translation.utils import (
    flatten_json,
    to_string_table,
    build_json_from_pairs,
    missing_keys,
)
from magicl10n.translation.codec import (
    BatchDocument,
    encode_batch,
    decode_batch,
    decode_job_output,
)
from magicl10n.translation.tracker import TranslationJobTracker
