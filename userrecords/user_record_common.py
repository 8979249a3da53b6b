"""Shared types and helpers for the user record workflows."""
from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass
from typing import Any, Callable, Protocol

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer

LogFn = Callable[[str], None]

DEFAULT_REGION = "us-east-1"
USER_TABLE_NAME = "lambda-user-records"

EMAIL_PATTERN = re.compile(r"^[a-z0-9._%+\-]+@[a-z0-9.\-]+\.[a-z]{2,}$", re.IGNORECASE)
USER_FIELDS = ("email", "firstName", "lastName")

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


class UserRecordError(RuntimeError):
    """Base class for every failure a user record operation reports."""

    message = "user record error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class InvalidInputError(UserRecordError):
    message = "invalid user data"


class InvalidEmailError(UserRecordError):
    message = "invalid email"


class NotFoundError(UserRecordError):
    message = "user does not exist"


class AlreadyExistsError(UserRecordError):
    message = "user already exists"


class EncodeError(UserRecordError):
    message = "could not marshal item"


class DecodeError(UserRecordError):
    message = "failed to unmarshal record"


class FetchError(UserRecordError):
    message = "failed to fetch record"


class WriteError(UserRecordError):
    message = "could not put item"


class DeleteError(UserRecordError):
    message = "could not delete item"


class DynamoDBAPI(Protocol):
    """The slice of the boto3 DynamoDB client the workflows call."""

    def get_item(self, **kwargs: Any) -> dict: ...

    def put_item(self, **kwargs: Any) -> dict: ...

    def delete_item(self, **kwargs: Any) -> dict: ...

    def scan(self, **kwargs: Any) -> dict: ...


@dataclass(slots=True)
class User:
    """One user record, keyed by email."""

    email: str
    firstName: str = ""
    lastName: str = ""

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


def _emit(log: LogFn | None, message: str) -> None:
    if log:
        log(message)


def is_email_valid(email: str) -> bool:
    if not isinstance(email, str):
        return False
    if len(email) < 3 or len(email) > 254:
        return False
    return EMAIL_PATTERN.match(email) is not None


def _user_from_mapping(data: dict, *, error: type[UserRecordError]) -> User:
    values: dict[str, str] = {}
    for field in USER_FIELDS:
        value = data.get(field, "")
        if not isinstance(value, str):
            raise error(f"{error.message}: field '{field}' must be a string")
        values[field] = value
    return User(**values)


def parse_user_body(body: str | bytes | None) -> User:
    """Turn a JSON request body into a User, rejecting malformed payloads."""

    try:
        data = json.loads(body or "")
    except (TypeError, ValueError) as exc:
        raise InvalidInputError() from exc
    if not isinstance(data, dict):
        raise InvalidInputError()
    return _user_from_mapping(data, error=InvalidInputError)


def user_key(email: str) -> dict[str, dict[str, str]]:
    return {"email": {"S": email}}


def encode_user(user: User) -> dict[str, dict]:
    """Serialize a User into a DynamoDB AttributeValue map."""

    try:
        return {name: _serializer.serialize(value) for name, value in user.to_dict().items()}
    except (TypeError, ValueError) as exc:
        raise EncodeError() from exc


def decode_user(item: dict[str, dict]) -> User:
    """Deserialize a DynamoDB AttributeValue map into a User."""

    try:
        data = {name: _deserializer.deserialize(value) for name, value in item.items()}
    except (TypeError, ValueError, KeyError, AttributeError) as exc:
        raise DecodeError() from exc
    if "email" not in data:
        raise DecodeError(f"{DecodeError.message}: missing 'email'")
    return _user_from_mapping(data, error=DecodeError)
