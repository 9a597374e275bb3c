"""
Refresh the catalog set index.

Run this job to check catalog connectivity and see how many printed set
totals the index resolves. The running service refreshes on its own.
"""

import asyncio
import logging

from cardscan.services.catalog_index import CatalogIndex

logger = logging.getLogger(__name__)


async def run_refresh(index: CatalogIndex | None = None) -> int:
    """
    Rebuild the set index from the catalog once.

    Returns:
        Number of indexed set totals

    Raises:
        RuntimeError: If the catalog could not be reached
    """
    index = index or CatalogIndex()
    logger.info("Refreshing catalog set index...")

    if not await index.refresh():
        logger.error("Catalog set index refresh failed; seed table only")
        raise RuntimeError("Catalog set index refresh failed")

    count = index.status().indexed_sets
    logger.info("Indexed %d set totals", count)
    return count


def main() -> None:
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_refresh())


if __name__ == "__main__":
    main()
