"""
Serve CRUD requests for user records stored in DynamoDB.

GET/POST/PUT/DELETE from API Gateway are mapped onto the user record
workflows; every response is a JSON envelope.
"""
from __future__ import annotations
import base64
import json
import os
from typing import Any, Callable

import boto3

from userrecords.user_record_actions import (
    create_user,
    delete_user,
    fetch_user,
    fetch_users,
    update_user,
)
from userrecords.user_record_common import (
    DEFAULT_REGION,
    USER_TABLE_NAME,
    DynamoDBAPI,
    User,
    UserRecordError,
)

ERROR_EMAIL_REQUIRED = "email is required"
ERROR_METHOD_NOT_ALLOWED = "method not allowed"
ERROR_INTERNAL = "internal error"


def _resolve_region(region: str | None = None) -> str:
    return region or os.environ.get("AWS_REGION") or DEFAULT_REGION


def _resolve_table_name(table_name: str | None = None) -> str:
    return table_name or os.environ.get("USER_TABLE_NAME") or USER_TABLE_NAME


def build_client(region_name: str | None = None) -> DynamoDBAPI:
    """
    Create a low-level DynamoDB client for the resolved region.
    """
    aws = boto3.session.Session()
    return aws.client("dynamodb", region_name=_resolve_region(region_name))


def api_response(status: int, body: Any) -> dict:
    if isinstance(body, User):
        body = body.to_dict()
    elif isinstance(body, list):
        body = [item.to_dict() if isinstance(item, User) else item for item in body]
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }


def error_response(status: int, message: str) -> dict:
    return api_response(status, {"error": message})


def _http_method(event: dict) -> str:
    method = event.get("httpMethod")
    if not method:
        method = ((event.get("requestContext") or {}).get("http") or {}).get("method")
    return (method or "").upper()


def _query_email(event: dict) -> str:
    params = event.get("queryStringParameters") or {}
    return params.get("email") or ""


def _request_body(event: dict) -> str | bytes | None:
    body = event.get("body")
    if body and event.get("isBase64Encoded"):
        try:
            return base64.b64decode(body)
        except ValueError:
            # Left undecoded; body parsing reports it as invalid user data.
            return body
    return body


def dispatch(
    event: dict,
    *,
    client: DynamoDBAPI,
    table_name: str,
    log: Callable[[str], None] | None = None,
) -> dict:
    """
    Map one API Gateway request onto a user record workflow.
    """
    log_fn = log or print
    method = _http_method(event)
    email = _query_email(event)
    log_fn(f"Received {method or '(no method)'} request, query={event.get('queryStringParameters')}")

    try:
        if method == "GET":
            if email:
                return api_response(200, fetch_user(email, table_name, client, log=log_fn))
            return api_response(200, fetch_users(table_name, client, log=log_fn))
        if method == "POST":
            return api_response(201, create_user(_request_body(event), table_name, client, log=log_fn))
        if method == "PUT":
            return api_response(200, update_user(_request_body(event), table_name, client, log=log_fn))
        if method == "DELETE":
            if not email:
                return error_response(400, ERROR_EMAIL_REQUIRED)
            delete_user(email, table_name, client, log=log_fn)
            return api_response(200, None)
    except UserRecordError as e:
        return error_response(400, str(e))

    log_fn(f"Unhandled method: {method}")
    return error_response(405, ERROR_METHOD_NOT_ALLOWED)


def main(event: dict, client: DynamoDBAPI, table_name: str | None = None) -> dict:
    """
    Resolve the table name, then dispatch the request.
    """
    try:
        return dispatch(
            event,
            client=client,
            table_name=_resolve_table_name(table_name),
        )
    except Exception as e:
        err = error_response(500, ERROR_INTERNAL)
        print(f"Error: {e!r}")
        return err


if __name__ == "__main__":
    # Simulated API Gateway event for local testing
    test_event = {
        "httpMethod": "GET",
        "queryStringParameters": None,
        "body": None,
    }
    print(main(test_event, client=build_client()))
