import logging
from sqlalchemy import (
    Table,
    MetaData,
    Column,
    String,
    Text,
)

logger = logging.getLogger(__name__)

metadata = MetaData()

# Key/value table standing in for the browser's local storage.
# Each row holds one whole collection serialized as a JSON array.
local_storage = Table(
    "local_storage",
    metadata,
    Column("key", String(255), primary_key=True),
    Column("value", Text, nullable=False),
)


def create_tables(engine):
    logger.info("Creating local storage tables")
    metadata.create_all(engine)
