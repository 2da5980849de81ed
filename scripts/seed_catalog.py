"""Load the sample products and auctions into the configured storage backend."""

import asyncio
import logging

from bidnthrift.config import get_server_config
from bidnthrift.logging import configure_logging
from bidnthrift.storage import SAMPLE_COLLECTIONS, build_storage

logger = logging.getLogger("seed_catalog")


async def seed() -> None:
    config = get_server_config()
    configure_logging(config.log_level)
    storage = build_storage(config)
    for collection, records in SAMPLE_COLLECTIONS.items():
        for record in records:
            await storage.create_record(collection, record)
        logger.info("Seeded %d records into %s", len(records), collection)


if __name__ == "__main__":
    asyncio.run(seed())
