"""Lambda entry point: one DynamoDB client per container."""

from __future__ import annotations

from functools import lru_cache

from function import build_client, main
from userrecords.user_record_common import DynamoDBAPI


@lru_cache(maxsize=1)
def storage_client() -> DynamoDBAPI:
    """Built on the cold start, reused by warm invocations."""
    return build_client()


def lambda_handler(event, context):
    """Hand the request and the cached client to function.main."""
    return main(event, client=storage_client())
