"""Build queue persistence."""

from prtrigger.state.migrations import CURRENT_SCHEMA_VERSION, migrate_database
from prtrigger.state.store import BuildQueue

__all__ = ["CURRENT_SCHEMA_VERSION", "BuildQueue", "migrate_database"]
