"""
sqlbridge - cross-dialect SQL schema and query generation.

Describe tables once, get correct DDL, ALTER plans and parameterized DML
for HSQLDB, Oracle, SQL Server, Db2, PostgreSQL and MySQL.
"""

__version__ = "0.1.0"

from sqlbridge.core import *  # noqa: F401,F403
from sqlbridge.dialect import Dialect, available_dialects, get_dialect, register_dialect
from sqlbridge.emitter import Emitter
from sqlbridge.planner import SchemaAlterationPlanner
from sqlbridge.policies import Restriction
from sqlbridge.schema import (
    CheckConstraintSchemaInfo,
    ColumnInfo,
    EntitySchemaInfo,
    FieldSchemaInfo,
    ForeignKeyRef,
    IndexSchemaInfo,
    SchemaResolver,
    UniqueConstraintSchemaInfo,
)
from sqlbridge.statements import ResultColumn, SqlParameter, SqlStatement
