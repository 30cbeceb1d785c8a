"""StormRocks get command: print one entity, with joins, as JSON."""

from __future__ import annotations

import json

import click

from stormrocks.interfaces.document_store import DocumentStoreError
from stormrocks.service_layer.errors import CollectionError, JoinError

from .helpers.app import open_container, resolve_db_url


@click.command()
@click.argument("collection")
@click.argument("entity_id")
@click.option(
    "--join",
    "-j",
    "joins",
    multiple=True,
    help="Relation path to hydrate (e.g. Account, Account.LastUpdateUser, "
    "RoleFeatures.Count, All). Repeatable.",
)
@click.option(
    "--depth",
    type=click.IntRange(min=0),
    default=None,
    help="Join recursion budget (defaults to STORMROCKS_JOIN_RECURSION_LIMIT).",
)
@click.option("--views/--no-views", default=False, help="Render computed views.")
@click.option(
    "--seed/--no-seed",
    "seed_first",
    default=False,
    help="Run the bootstrap pipeline before reading.",
)
@click.option(
    "--in-memory",
    is_flag=True,
    help="Read from a throwaway in-memory store (useful with --seed).",
)
@click.pass_context
def get(  # pylint: disable=too-many-arguments, too-many-positional-arguments
    ctx: click.Context,
    collection: str,
    entity_id: str,
    joins: tuple[str, ...],
    depth: int | None,
    views: bool,
    seed_first: bool,
    in_memory: bool,
) -> None:
    """Print the entity ENTITY_ID of COLLECTION as JSON."""
    container = open_container(resolve_db_url(in_memory))
    if (ctx.obj or {}).get("log_joins"):
        container.resolver.log_joins = True
    try:
        if seed_first:
            container.seed_now()
        else:
            for registered in container.registry.collections():
                registered.mark_ready()

        query = container.collection(collection).query().views(views)
        for path in joins:
            query = query.join(path)
        if depth is not None:
            query = query.depth(depth)
        entity = query.by_id(entity_id)
    except (CollectionError, DocumentStoreError, JoinError) as e:
        raise click.ClickException(str(e)) from e
    finally:
        container.shutdown()

    click.echo(json.dumps(entity.to_json(), indent=2, default=str))

