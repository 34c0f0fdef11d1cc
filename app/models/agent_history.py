"""
Agent history tables written by the external workflow tool.

Every agent type has its own table with the same layout; the JSON ``message``
column holds ``{type, content, additional_kwargs, response_metadata}``.
"""

from typing import Dict
from sqlalchemy import BigInteger, Column, DateTime, Integer, MetaData, String, Table, Text, Index

# Kept apart from Base.metadata: these tables are created by the workflow tool
agent_history_metadata = MetaData()

_tables: Dict[str, Table] = {}


def agent_history_table(name: str) -> Table:
    """Return the table object for ``name``, defining it on first use"""
    table = _tables.get(name)
    if table is None:
        table = Table(
            name,
            agent_history_metadata,
            # BigInteger on PostgreSQL, INTEGER on SQLite so rowid autoincrement still applies
            Column("id", BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True),
            Column("session_id", String(255), nullable=False),
            Column("message", Text, nullable=False),
            Column("created_at", DateTime(timezone=True), nullable=True),
            Index(f"idx_{name}_session_id", "session_id"),
        )
        _tables[name] = table
    return table
