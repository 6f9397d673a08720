"""Engine components: table parsing → search client → batch driver → export."""

from .client import SearchClient
from .driver import BatchQueryDriver
from .table import ColumnMapping, LocationTable, load_table, parse_table, suggest_columns

__all__ = [
    "BatchQueryDriver",
    "ColumnMapping",
    "LocationTable",
    "SearchClient",
    "load_table",
    "parse_table",
    "suggest_columns",
]
