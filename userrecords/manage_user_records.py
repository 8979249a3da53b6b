#!/usr/bin/env python3
"""
Manage user records in the DynamoDB table from the command line.

Runs the same workflows the Lambda serves, which makes it handy for seeding a
table or checking a deployment by hand.

Prerequisites:
  • AWS credentials for the target account (any source boto3 understands).
  • Set AWS_REGION and USER_TABLE_NAME, or pass --region/--table.
"""
from __future__ import annotations

import argparse
import json
import os
import sys
from collections.abc import Sequence

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
    UserRecordError,
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Read and write user records.")
    parser.add_argument(
        "--region",
        default=os.environ.get("AWS_REGION", DEFAULT_REGION),
        help="AWS region of the table.",
    )
    parser.add_argument(
        "--table",
        default=os.environ.get("USER_TABLE_NAME", USER_TABLE_NAME),
        help="DynamoDB table holding the records.",
    )
    parser.add_argument("--quiet", action="store_true", help="Suppress progress messages.")
    commands = parser.add_subparsers(dest="command", required=True)

    get = commands.add_parser("get", help="Show one user.")
    get.add_argument("email")

    commands.add_parser("list", help="Show every user (single scan page).")

    for name, help_text in (("create", "Create a new user."), ("update", "Replace an existing user.")):
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument("email")
        sub.add_argument("--first-name", default="", help="Given name.")
        sub.add_argument("--last-name", default="", help="Family name.")

    delete = commands.add_parser("delete", help="Delete a user.")
    delete.add_argument("email")
    return parser


def run(argv: Sequence[str] | None = None, *, client: DynamoDBAPI | None = None) -> int:
    args = _build_parser().parse_args(argv)
    log = None if args.quiet else (lambda msg: print(msg, file=sys.stderr))
    dynamodb = client or boto3.session.Session().client("dynamodb", region_name=args.region)

    try:
        if args.command == "get":
            result = fetch_user(args.email, args.table, dynamodb, log=log).to_dict()
        elif args.command == "list":
            result = [user.to_dict() for user in fetch_users(args.table, dynamodb, log=log)]
        elif args.command in {"create", "update"}:
            body = json.dumps(
                {"email": args.email, "firstName": args.first_name, "lastName": args.last_name}
            )
            action = create_user if args.command == "create" else update_user
            result = action(body, args.table, dynamodb, log=log).to_dict()
        else:
            delete_user(args.email, args.table, dynamodb, log=log)
            result = {"deleted": args.email}
    except UserRecordError as exc:
        print(f"{args.command} failed: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2))
    return 0


def cli() -> None:
    sys.exit(run())


if __name__ == "__main__":
    cli()
