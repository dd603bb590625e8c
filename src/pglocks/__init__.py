"""pglocks: infer the PostgreSQL table locks a SQL statement takes."""

from pglocks.analysis import LockAnalyzer, analyze_query, analyze_sql
from pglocks.comparison import compare_queries
from pglocks.locks import LockMode

__version__ = "0.1.0"

__all__ = [
    "LockAnalyzer",
    "LockMode",
    "__version__",
    "analyze_query",
    "analyze_sql",
    "compare_queries",
]
