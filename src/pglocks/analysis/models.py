"""Pydantic models for lock analysis results."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from pglocks.locks.registry import LockMode


class Classification(str, Enum):
    """Statement variants with a known lock footprint."""

    SELECT = "SELECT"
    SELECT_FOR_UPDATE = "SELECT FOR UPDATE"
    SELECT_FOR_NO_KEY_UPDATE = "SELECT FOR NO KEY UPDATE"
    SELECT_FOR_SHARE = "SELECT FOR SHARE"
    SELECT_FOR_KEY_SHARE = "SELECT FOR KEY SHARE"
    INSERT = "INSERT"
    INSERT_ON_CONFLICT = "INSERT ON CONFLICT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    MERGE = "MERGE"
    COPY_TO = "COPY TO"
    COPY_FROM = "COPY FROM"
    EXPLAIN = "EXPLAIN"
    TRUNCATE = "TRUNCATE"
    DROP_TABLE = "DROP TABLE"
    CREATE_INDEX = "CREATE INDEX"
    CREATE_INDEX_CONCURRENTLY = "CREATE INDEX CONCURRENTLY"
    REINDEX = "REINDEX"
    REINDEX_CONCURRENTLY = "REINDEX CONCURRENTLY"
    CLUSTER = "CLUSTER"
    VACUUM = "VACUUM"
    VACUUM_FULL = "VACUUM FULL"
    ANALYZE = "ANALYZE"
    ALTER_TABLE = "ALTER TABLE"
    ALTER_TABLE_ADD_COLUMN = "ALTER TABLE ADD COLUMN"
    ALTER_TABLE_ADD_FOREIGN_KEY = "ALTER TABLE ADD FOREIGN KEY"
    ALTER_TABLE_VALIDATE_CONSTRAINT = "ALTER TABLE VALIDATE CONSTRAINT"
    ALTER_TABLE_ATTACH_PARTITION = "ALTER TABLE ATTACH PARTITION"
    ALTER_TABLE_SET_TABLESPACE = "ALTER TABLE SET TABLESPACE"
    ALTER_TABLE_DISABLE_TRIGGER = "ALTER TABLE DISABLE TRIGGER"
    CREATE_TRIGGER = "CREATE TRIGGER"
    REFRESH_MATERIALIZED_VIEW = "REFRESH MATERIALIZED VIEW"
    REFRESH_MATERIALIZED_VIEW_CONCURRENTLY = "REFRESH MATERIALIZED VIEW CONCURRENTLY"
    UNKNOWN = "UNKNOWN"


class LockPolicy(str, Enum):
    """Which tables of a statement receive the statement's own lock mode."""

    SINGLE_PRIMARY = "single_primary"
    ALL_PRIMARY = "all_primary"
    DUAL_PRIMARY = "dual_primary"


class TableRole(str, Enum):
    """Role a table plays in a statement."""

    PRIMARY = "primary"
    REFERENCED = "referenced"


class AnalysisErrorKind(str, Enum):
    """Reasons an analysis produced no lock information."""

    EMPTY_INPUT = "EMPTY_INPUT"
    UNPARSEABLE_INPUT = "UNPARSEABLE_INPUT"
    NO_TABLES_FOUND = "NO_TABLES_FOUND"
    UNKNOWN_CLASSIFICATION = "UNKNOWN_CLASSIFICATION"
    PARSER_UNAVAILABLE = "PARSER_UNAVAILABLE"
    MULTIPLE_STATEMENTS = "MULTIPLE_STATEMENTS"


class LockRule(BaseModel):
    """Lock mode and assignment policy for one classification."""

    model_config = ConfigDict(frozen=True)

    lock_mode: LockMode
    policy: LockPolicy = LockPolicy.SINGLE_PRIMARY


class AnalyzedQuery(BaseModel):
    """Classification and tables of a single statement."""

    model_config = ConfigDict(frozen=True)

    classification: Classification = Field(
        default=Classification.UNKNOWN, description="Recognized statement variant"
    )
    tables: List[str] = Field(
        default_factory=list,
        description="Base tables touched, deduplicated, in discovery order",
    )
    valid: bool = Field(
        default=False, description="Whether lock information could be derived"
    )
    error: Optional[str] = Field(None, description="Why the analysis failed")
    error_kind: Optional[AnalysisErrorKind] = Field(
        None, description="Category of the failure"
    )
    target_table: Optional[str] = Field(
        None, description="Table the statement acts on directly, when named"
    )
    secondary_table: Optional[str] = Field(
        None,
        description="Second acted-upon table (foreign key target, new partition)",
    )


class TableLockInfo(BaseModel):
    """Lock a statement takes on one table."""

    table: str = Field(..., description="Table name")
    role: TableRole = Field(..., description="PRIMARY or REFERENCED")
    lock_mode: LockMode = Field(..., description="Table-level lock mode")
    description: str = Field(..., description="Summary of the lock mode")
    conflicts: List[LockMode] = Field(
        default_factory=list, description="Modes conflicting with lock_mode"
    )


class QueryMetadata(BaseModel):
    """Position of a statement within the analyzed SQL."""

    query_index: int = Field(..., description="0-based query index")
    query_preview: str = Field(..., description="First 100 chars of query")


class QueryLockResult(BaseModel):
    """Complete lock analysis for a single statement."""

    metadata: QueryMetadata
    analysis: AnalyzedQuery
    locks: List[TableLockInfo] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """True when the statement produced lock information."""
        return self.analysis.valid and bool(self.locks)

    def get_lock(self, table: str) -> Optional[TableLockInfo]:
        """Find the lock taken on ``table``, if any."""
        for lock in self.locks:
            if lock.table == table:
                return lock
        return None
