"""CLI: sharex db find|insert|update|delete"""

import json
from typing import Optional

import click

from sharex_sdk.client import SharexSDK


def _run_request(call, json_output: bool) -> None:
    from sharex_sdk.cli.main import run_request
    run_request(call, json_output)


def _parse_json(value: str, what: str):
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"{what} is not valid JSON: {e}")


def _open_store(client: SharexSDK, db_name: str):
    return client.create_db_instance(db_name)


@click.group()
def db():
    """Document store requests."""


@db.command("find")
@click.argument("db_name")
@click.argument("collection")
@click.argument("query", required=False)
@click.option("--json-output", "--json", is_flag=True)
def find(db_name: str, collection: str, query: Optional[str], json_output: bool):
    """Fetch documents, all of them or those matching QUERY."""

    async def _find(client: SharexSDK):
        store = _open_store(client, db_name)
        if query is None:
            return await client.request(store.find, collection)
        return await client.request(store.find, collection, query)

    _run_request(_find, json_output)


@db.command("insert")
@click.argument("db_name")
@click.argument("collection")
@click.argument("document")
@click.option("--identity", is_flag=True, help="Stamp each document with a generated _uuid")
@click.option("--json-output", "--json", is_flag=True)
def insert(db_name: str, collection: str, document: str, identity: bool, json_output: bool):
    """Insert DOCUMENT (a JSON object, or an array for a bulk insert)."""
    data = _parse_json(document, "DOCUMENT")

    async def _insert(client: SharexSDK):
        store = _open_store(client, db_name)
        return await client.request(store.insert, collection, data, {"identity": identity})

    _run_request(_insert, json_output)


@db.command("update")
@click.argument("db_name")
@click.argument("collection")
@click.argument("query")
@click.argument("document")
@click.option("--id", "by_id", is_flag=True, help="QUERY is a document _uuid")
@click.option("--json-output", "--json", is_flag=True)
def update(db_name: str, collection: str, query: str, document: str, by_id: bool, json_output: bool):
    """Apply the partial DOCUMENT to the documents matching QUERY."""
    patch = _parse_json(document, "DOCUMENT")

    async def _update(client: SharexSDK):
        store = _open_store(client, db_name)
        operation = store.update_by_id if by_id else store.update
        return await client.request(operation, collection, query, patch)

    _run_request(_update, json_output)


@db.command("delete")
@click.argument("db_name")
@click.argument("collection")
@click.argument("query")
@click.option("--id", "by_id", is_flag=True, help="QUERY is a document _uuid")
@click.option("--json-output", "--json", is_flag=True)
def delete(db_name: str, collection: str, query: str, by_id: bool, json_output: bool):
    """Delete the documents matching QUERY."""

    async def _delete(client: SharexSDK):
        store = _open_store(client, db_name)
        operation = store.delete_by_id if by_id else store.delete
        return await client.request(operation, collection, query)

    _run_request(_delete, json_output)
