from catechism_app.core.database import AsyncSessionLocal
from catechism_app.integrations.row_source import DatabaseRowSource, RowSource


def get_row_source() -> RowSource:
    return DatabaseRowSource(AsyncSessionLocal)
