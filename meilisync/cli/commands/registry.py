"""`meilisync registry` - list declared indexes and their planned targets."""

import asyncio

from meilisync.cli.console import Console, get_console
from meilisync.cli.util.runtime import app_container
from meilisync.domain.index.model.registry import IndexRegistry
from meilisync.domain.index.service.planner import TargetPlanner


def render_registry(
    registry: IndexRegistry,
    planner: TargetPlanner,
    console: Console,
    filter: str | None = None,
) -> int:
    summary = registry.summary(filter)
    if not summary:
        console.warning("No indexes declared" + (f" matching '{filter}'" if filter else ""))
        return 0

    rows = []
    for name, info in summary.items():
        targets = planner.targets_for_base(name, per_locale=True)
        rows.append(
            {
                "name": name,
                "class": info["class"],
                "pk": info["primaryKey"],
                "facets": sorted(info["facets"]),
                "uids": [t.uid for t in targets],
            }
        )
    console.table(
        rows,
        [
            ("name", "Index"),
            ("class", "Record class"),
            ("pk", "Primary key"),
            ("facets", "Facets"),
            ("uids", "Engine indexes"),
        ],
        title=f"{len(rows)} declared indexes",
    )
    return 0


async def _registry(filter: str | None) -> int:
    async with app_container() as container:
        registry = await container.get(IndexRegistry)
        planner = await container.get(TargetPlanner)
        return render_registry(registry, planner, get_console(), filter)


def registry(filter: str | None = None) -> None:
    """List declared indexes with their engine index names.

    Args:
        filter: Only show indexes whose name contains this text.
    """
    asyncio.run(_registry(filter))
