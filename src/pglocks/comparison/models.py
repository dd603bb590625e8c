"""Pydantic models for cross-query lock comparison."""

from typing import List

from pydantic import BaseModel, Field

from pglocks.locks.registry import LockMode


class TableConflict(BaseModel):
    """A table both queries lock in conflicting modes."""

    table: str = Field(..., description="Table name")
    lock_a: LockMode = Field(..., description="Lock taken by the first query")
    lock_b: LockMode = Field(..., description="Lock taken by the second query")
    reason: str = Field(..., description="Why the locks cannot coexist")


class CompatibleTable(BaseModel):
    """A table both queries lock in compatible modes."""

    table: str = Field(..., description="Table name")
    lock_a: LockMode = Field(..., description="Lock taken by the first query")
    lock_b: LockMode = Field(..., description="Lock taken by the second query")


class UniqueTables(BaseModel):
    """Tables locked by only one of the two queries."""

    side_a_only: List[str] = Field(default_factory=list)
    side_b_only: List[str] = Field(default_factory=list)


class ComparisonResult(BaseModel):
    """Outcome of comparing the locks of two queries."""

    is_compatible: bool = Field(
        ..., description="True when the queries can hold their locks together"
    )
    conflicting_tables: List[TableConflict] = Field(default_factory=list)
    compatible_tables: List[CompatibleTable] = Field(default_factory=list)
    unique_tables: UniqueTables = Field(default_factory=UniqueTables)
