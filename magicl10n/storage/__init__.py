"""
Storage module - Object storage and the job ledger

This module provides:
- s3: ObjectStorage, blobs and archives on S3
- ledger: Master job records in DynamoDB or sqlite
"""

from magicl10n.storage.s3 import ObjectStorage
from magicl10n.storage.ledger import (
    JobRecord,
    DynamoJobLedger,
    SqliteJobLedger,
    create_ledger,
)
