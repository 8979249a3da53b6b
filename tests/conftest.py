from __future__ import annotations

import copy
from typing import Any

import pytest
from botocore.exceptions import ClientError

TABLE = "users"


def client_error(code: str, operation: str, message: str = "boom") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class FakeDynamoDB:
    """
    In-memory stand-in for the low-level boto3 DynamoDB client.

    Items are stored in AttributeValue form keyed by the `email` string, so the
    code under test goes through the same serialization it uses against AWS.
    """

    def __init__(self, table_name: str = TABLE) -> None:
        self.table_name = table_name
        self.items: dict[str, dict] = {}
        self.calls: list[str] = []
        self.failures: dict[str, ClientError] = {}
        self.truncate_scan = False

    def fail(self, operation: str, code: str = "InternalServerError") -> None:
        self.failures[operation] = client_error(code, operation)

    def seed(self, email: str, first_name: str = "", last_name: str = "") -> None:
        self.items[email] = {
            "email": {"S": email},
            "firstName": {"S": first_name},
            "lastName": {"S": last_name},
        }

    def seed_raw(self, key: str, item: dict) -> None:
        self.items[key] = item

    def records(self) -> dict[str, dict[str, str]]:
        return {
            key: {name: value["S"] for name, value in item.items()}
            for key, item in self.items.items()
        }

    def _enter(self, operation: str, table_name: str) -> None:
        self.calls.append(operation)
        if operation in self.failures:
            raise self.failures[operation]
        if table_name != self.table_name:
            raise client_error("ResourceNotFoundException", operation, "Requested resource not found")

    def get_item(self, *, TableName: str, Key: dict) -> dict[str, Any]:
        self._enter("GetItem", TableName)
        item = self.items.get(Key["email"]["S"])
        if item is None:
            return {}
        return {"Item": copy.deepcopy(item)}

    def put_item(self, *, TableName: str, Item: dict, ConditionExpression: str | None = None) -> dict:
        self._enter("PutItem", TableName)
        email = Item["email"]["S"]
        if ConditionExpression == "attribute_not_exists(email)" and email in self.items:
            raise client_error("ConditionalCheckFailedException", "PutItem", "The conditional request failed")
        self.items[email] = copy.deepcopy(Item)
        return {}

    def delete_item(self, *, TableName: str, Key: dict) -> dict:
        self._enter("DeleteItem", TableName)
        self.items.pop(Key["email"]["S"], None)
        return {}

    def scan(self, *, TableName: str) -> dict[str, Any]:
        self._enter("Scan", TableName)
        items = [copy.deepcopy(item) for item in self.items.values()]
        result: dict[str, Any] = {"Items": items, "Count": len(items)}
        if self.truncate_scan and items:
            result["LastEvaluatedKey"] = {"email": items[-1]["email"]}
        return result


@pytest.fixture()
def dynamodb() -> FakeDynamoDB:
    return FakeDynamoDB()
