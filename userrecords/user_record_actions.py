"""High-level helpers for the user record CRUD workflows."""
from __future__ import annotations

from botocore.exceptions import BotoCoreError, ClientError

from userrecords.user_record_common import (
    AlreadyExistsError,
    DecodeError,
    DeleteError,
    DynamoDBAPI,
    FetchError,
    InvalidEmailError,
    LogFn,
    NotFoundError,
    User,
    UserRecordError,
    WriteError,
    _emit,
    decode_user,
    encode_user,
    is_email_valid,
    parse_user_body,
    user_key,
)

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"


def _error_code(exc: Exception) -> str | None:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    return None


def fetch_user(
    email: str,
    table_name: str,
    client: DynamoDBAPI,
    *,
    log: LogFn | None = None,
) -> User:
    """Look up a single user by exact email match."""

    try:
        result = client.get_item(TableName=table_name, Key=user_key(email))
    except (ClientError, BotoCoreError) as exc:
        _emit(log, f"get_item failed for {email}: {exc}")
        raise FetchError() from exc

    item = result.get("Item")
    if not item:
        raise NotFoundError()
    return decode_user(item)


def fetch_users(
    table_name: str,
    client: DynamoDBAPI,
    *,
    log: LogFn | None = None,
) -> list[User]:
    """Return every user from a single, unfiltered scan page."""

    try:
        result = client.scan(TableName=table_name)
    except (ClientError, BotoCoreError) as exc:
        _emit(log, f"scan failed on {table_name}: {exc}")
        raise FetchError() from exc

    if result.get("LastEvaluatedKey"):
        _emit(log, f"Scan of {table_name} returned a partial page; remaining records were not read.")
    return [decode_user(item) for item in result.get("Items", [])]


def _put_user(
    user: User,
    table_name: str,
    client: DynamoDBAPI,
    *,
    if_absent: bool,
    log: LogFn | None,
) -> None:
    put_kwargs = {"TableName": table_name, "Item": encode_user(user)}
    if if_absent:
        put_kwargs["ConditionExpression"] = "attribute_not_exists(email)"
    try:
        client.put_item(**put_kwargs)
    except (ClientError, BotoCoreError) as exc:
        if if_absent and _error_code(exc) == CONDITIONAL_CHECK_FAILED:
            _emit(log, f"User {user.email} was created concurrently; rejecting.")
            raise AlreadyExistsError() from exc
        _emit(log, f"put_item failed for {user.email}: {exc}")
        raise WriteError() from exc


def create_user(
    body: str | bytes | None,
    table_name: str,
    client: DynamoDBAPI,
    *,
    log: LogFn | None = None,
) -> User:
    """Create a user from a JSON body, refusing to replace an existing email."""

    user = parse_user_body(body)
    if not is_email_valid(user.email):
        raise InvalidEmailError()

    # Any failed lookup counts as absent; the conditional put still refuses duplicates.
    try:
        current = fetch_user(user.email, table_name, client, log=log)
    except UserRecordError:
        current = None
    if current is not None and current.email:
        raise AlreadyExistsError()

    _put_user(user, table_name, client, if_absent=True, log=log)
    _emit(log, f"Created user {user.email}.")
    return user


def update_user(
    body: str | bytes | None,
    table_name: str,
    client: DynamoDBAPI,
    *,
    log: LogFn | None = None,
) -> User:
    """Replace an existing user with the record in the JSON body."""

    user = parse_user_body(body)
    # DynamoDB rejects an empty key outright, so there is nothing to look up.
    if not user.email:
        raise NotFoundError()

    try:
        current = fetch_user(user.email, table_name, client, log=log)
    except (FetchError, DecodeError) as exc:
        raise NotFoundError() from exc
    if not current.email:
        raise NotFoundError()

    _put_user(user, table_name, client, if_absent=False, log=log)
    _emit(log, f"Updated user {user.email}.")
    return user


def delete_user(
    email: str,
    table_name: str,
    client: DynamoDBAPI,
    *,
    log: LogFn | None = None,
) -> None:
    """Delete the user keyed by email; absent keys are not an error."""

    try:
        client.delete_item(TableName=table_name, Key=user_key(email))
    except (ClientError, BotoCoreError) as exc:
        _emit(log, f"delete_item failed for {email}: {exc}")
        raise DeleteError() from exc
    _emit(log, f"Deleted user {email}.")
