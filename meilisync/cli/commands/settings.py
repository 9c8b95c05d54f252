"""`meilisync settings` - compare or apply declared index settings."""

import asyncio
import sys

import cyclopts

from meilisync.cli.console import Console, get_console
from meilisync.cli.util.runtime import app_container
from meilisync.domain.index.model.registry import IndexRegistry
from meilisync.domain.index.service.lifecycle import IndexLifecycle
from meilisync.domain.index.service.planner import TargetPlanner
from meilisync.domain.shared.error import MeiliSyncError

app = cyclopts.App(name="settings", help="Compare or apply index settings")


async def run_check(
    bases: list[str],
    registry: IndexRegistry,
    planner: TargetPlanner,
    lifecycle: IndexLifecycle,
    console: Console,
) -> int:
    """Report settings drift per engine index; exit code 1 when any drift or error."""
    drift = False
    rows = []
    for target in planner.targets_for_bases(bases or registry.names(), per_locale=True):
        entry = registry.get(target.base)
        if entry is None:
            continue
        try:
            check = await lifecycle.compare_settings(target.uid, entry)
        except MeiliSyncError as e:
            drift = True
            rows.append({"uid": target.uid, "state": f"error: {e.message}"})
            continue
        if not check.in_sync:
            drift = True
        changes = [
            f"{key}: +{','.join(d['added']) or '-'} -{','.join(d['removed']) or '-'}"
            for key, d in check.diff.items()
        ]
        rows.append(
            {
                "uid": target.uid,
                "pending": check.pending,
                "state": "in sync" if check.in_sync else "; ".join(changes),
            }
        )
    console.table(rows, [("uid", "Index"), ("pending", "Pending tasks"), ("state", "Settings")])
    return 1 if drift else 0


async def run_apply(
    bases: list[str],
    registry: IndexRegistry,
    planner: TargetPlanner,
    lifecycle: IndexLifecycle,
    console: Console,
) -> int:
    failed = 0
    for target in planner.targets_for_bases(bases or registry.names(), per_locale=True):
        entry = registry.get(target.base)
        if entry is None:
            continue
        try:
            await lifecycle.get_or_create_index(target.uid, entry.primary_key)
            task = await lifecycle.apply_settings(target.uid, entry)
            await lifecycle.wait_for_task(task, stop_on_error=True)
        except MeiliSyncError as e:
            failed += 1
            console.error(f"{target.uid}: {e.message}")
            continue
        console.success(f"{target.uid}: settings applied")
    return 1 if failed else 0


async def _run(bases: list[str], apply: bool) -> int:
    async with app_container() as container:
        registry = await container.get(IndexRegistry)
        planner = await container.get(TargetPlanner)
        lifecycle = await container.get(IndexLifecycle)
        runner = run_apply if apply else run_check
        return await runner(bases, registry, planner, lifecycle, get_console())


@app.command
def check(*bases: str) -> None:
    """Show settings drift between declarations and live indexes.

    Args:
        bases: Logical index names; all declared indexes when omitted.
    """
    code = asyncio.run(_run(list(bases), apply=False))
    if code:
        sys.exit(code)


@app.command
def apply(*bases: str) -> None:
    """Push declared settings to the engine and wait for them.

    Args:
        bases: Logical index names; all declared indexes when omitted.
    """
    code = asyncio.run(_run(list(bases), apply=True))
    if code:
        sys.exit(code)
