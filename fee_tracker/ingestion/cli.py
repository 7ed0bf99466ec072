import typer
from typing import Optional
import logging
from fee_tracker.chains.handlers import ChainType, HandlerRegistry
from fee_tracker.config.settings import APP_START_BLOCK
from fee_tracker.pools.initializer import initialize_pools
from fee_tracker.pools.registry import load_pool_registry
from fee_tracker.sources.etherscan.etherscan_client import get_explorer_client
from fee_tracker.storage.db import init_db
from fee_tracker.sync.block_range_resolver import BlockRangeResolver
from fee_tracker.utils.exceptions import FeeTrackerError

log = logging.getLogger(__name__)

app = typer.Typer(help="Pool fee tracker maintenance commands")


@app.command("init-pools")
def init_pools(
    start_block: Optional[int] = typer.Option(None, help="Seed every cursor at this block instead of the pool creation block"),
):
    """Create the tables and seed a cursor for every configured pool."""
    init_db()
    registry = load_pool_registry()
    seed = start_block if start_block is not None else APP_START_BLOCK
    seeded = initialize_pools(registry, HandlerRegistry(), start_block=seed)
    typer.echo(f"Seeded {seeded}/{len(registry)} pools")


@app.command("poll")
def poll(
    dry_run: bool = typer.Option(False, help="Only print the ranges, do not queue them"),
):
    """Run one block-range resolution pass now instead of waiting for beat."""
    if dry_run:
        enqueue = lambda task: typer.echo(f"[dry-run] {task.to_dict()}")
    else:
        from fee_tracker.sync.tasks import enqueue_enrichment
        enqueue = enqueue_enrichment

    resolver = BlockRangeResolver(
        pools=load_pool_registry(),
        handlers=HandlerRegistry(),
        enqueue=enqueue,
    )
    queued = resolver.run()
    typer.echo(f"Queued {len(queued)} enrichment tasks")


@app.command("status")
def status(
    pool_address: str = typer.Option(..., help="0x... or base58"),
    chain_id: int = typer.Option(1),
    chain_type: ChainType = typer.Option(ChainType.ETHEREUM),
):
    """Show how far a pool's cursor trails the chain head."""
    try:
        current = HandlerRegistry().get_handler(chain_type).get_current_block(pool_address, chain_id)
        latest = get_explorer_client(chain_id).get_block_number()
    except FeeTrackerError as e:
        typer.echo(f"❌ {e.message}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"head={latest} cursor={current} behind={max(latest - current, 0)}")


def main():
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(name)s: %(message)s")
    app()


if __name__ == "__main__":
    main()
