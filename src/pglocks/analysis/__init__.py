"""Statement classification, table discovery and lock assignment."""

from pglocks.analysis.analyzer import LockAnalyzer, analyze_query, analyze_sql
from pglocks.analysis.assigner import LockLookupError, assign_locks
from pglocks.analysis.classifier import classify
from pglocks.analysis.commands import CommandAnalysis, read_command
from pglocks.analysis.extractor import (
    TableExtractor,
    extract_tables,
    statement_targets,
    table_name,
)
from pglocks.analysis.models import (
    AnalysisErrorKind,
    AnalyzedQuery,
    Classification,
    LockPolicy,
    LockRule,
    QueryLockResult,
    QueryMetadata,
    TableLockInfo,
    TableRole,
)
from pglocks.analysis.rules import COMMAND_LOCKS, get_command_lock_mode, get_lock_rule

__all__ = [
    "AnalysisErrorKind",
    "AnalyzedQuery",
    "COMMAND_LOCKS",
    "Classification",
    "CommandAnalysis",
    "LockAnalyzer",
    "LockLookupError",
    "LockPolicy",
    "LockRule",
    "QueryLockResult",
    "QueryMetadata",
    "TableExtractor",
    "TableLockInfo",
    "TableRole",
    "analyze_query",
    "analyze_sql",
    "assign_locks",
    "classify",
    "extract_tables",
    "get_command_lock_mode",
    "get_lock_rule",
    "read_command",
    "statement_targets",
    "table_name",
]
