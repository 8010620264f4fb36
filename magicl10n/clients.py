"""
AWS client handles.

One boto3 session is built per pipeline from the loaded configuration and its
clients are injected into each component; no global SDK state is touched.
"""

from dataclasses import dataclass
from typing import Any, Dict

import boto3
from botocore.config import Config

from magicl10n.logger import get_logger

logger = get_logger(__name__)


@dataclass
class AwsClients:
    """The SDK clients the pipeline talks to."""
    s3: Any
    translate: Any
    dynamodb: Any  # boto3 DynamoDB service resource


def create_clients(config: Dict[str, Any]) -> AwsClients:
    """Create AWS clients for the configured region and retry budget."""
    aws_config = config.get("aws", {})
    region = aws_config.get("region", "us-east-1")
    max_retries = int(aws_config.get("max_retries", 5))

    session = boto3.session.Session(region_name=region)
    client_config = Config(retries={"max_attempts": max_retries, "mode": "standard"})

    logger.debug(f"Creating AWS clients for region {region} (max_attempts={max_retries})")

    return AwsClients(
        s3=session.client(
            "s3",
            api_version=aws_config.get("s3_api_version"),
            config=client_config,
        ),
        translate=session.client("translate", config=client_config),
        dynamodb=session.resource("dynamodb", config=client_config),
    )
