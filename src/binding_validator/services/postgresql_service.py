"""
PostgreSQL validation service
"""

import logging
from typing import Any, AsyncContextManager, Dict

import asyncpg

from binding_validator.database.connection import open_postgres, relational_settings
from binding_validator.models.enums import BackendKind
from binding_validator.models.validation import ValidationRequest
from binding_validator.services.base_service import BaseValidationService, millis_suffix

logger = logging.getLogger(__name__)

CREATE_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS validation_test (
        id SERIAL PRIMARY KEY,
        key_name VARCHAR(255) NOT NULL,
        value VARCHAR(255),
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""

LIST_TABLES_SQL = """
    SELECT table_name, table_type,
           COALESCE((SELECT reltuples::bigint FROM pg_class WHERE relname = table_name), 0) AS row_count
    FROM information_schema.tables
    WHERE table_schema = 'public'
    ORDER BY table_name
"""


def _affected_rows(status: str) -> int:
    """Row count from an asyncpg command status such as ``UPDATE 3``"""
    try:
        return int(status.split()[-1])
    except (AttributeError, IndexError, ValueError):
        return 0


def _iso(value: Any) -> Any:
    return value.isoformat() if value is not None else None


class PostgresqlValidationService(BaseValidationService):
    """Read/write validation against the first bound PostgreSQL service"""

    SERVICE_NAME = "PostgreSQL"
    KIND = BackendKind.POSTGRESQL
    OPERATIONS = {
        "read": "perform_read",
        "write": "perform_write",
        "update": "perform_update",
        "delete": "perform_delete",
        "listall": "perform_list_all",
        "listtables": "perform_list_tables",
    }

    def connect(self) -> AsyncContextManager[asyncpg.Connection]:
        conn_settings = relational_settings(self.credentials, self.KIND)
        logger.info(f"Connecting to PostgreSQL at {conn_settings.describe()}")
        return open_postgres(conn_settings)

    async def prepare(self, conn: asyncpg.Connection) -> None:
        await conn.execute(CREATE_TABLE_SQL)

    async def perform_read(self, conn: asyncpg.Connection, request: ValidationRequest) -> Dict[str, Any]:
        key = request.key or "test"
        row = await conn.fetchrow("SELECT * FROM validation_test WHERE key_name = $1", key)
        if row is None:
            return {"found": False, "key": key}
        return {
            "found": True,
            "id": row["id"],
            "key": row["key_name"],
            "value": row["value"],
            "created_at": _iso(row["created_at"]),
        }

    async def perform_write(self, conn: asyncpg.Connection, request: ValidationRequest) -> Dict[str, Any]:
        key = request.key or f"test_{millis_suffix()}"
        value = request.value if request.value is not None else "test_value"
        generated_id = await conn.fetchval(
            "INSERT INTO validation_test (key_name, value) VALUES ($1, $2) RETURNING id",
            key, value
        )
        return {"rows_affected": 1, "generated_id": generated_id, "key": key}

    async def perform_update(self, conn: asyncpg.Connection, request: ValidationRequest) -> Dict[str, Any]:
        key = request.key or "test"
        value = request.value if request.value is not None else "updated_value"
        status = await conn.execute(
            "UPDATE validation_test SET value = $1, updated_at = CURRENT_TIMESTAMP WHERE key_name = $2",
            value, key
        )
        return {"rows_affected": _affected_rows(status), "key": key}

    async def perform_delete(self, conn: asyncpg.Connection, request: ValidationRequest) -> Dict[str, Any]:
        key = request.key or "test"
        status = await conn.execute("DELETE FROM validation_test WHERE key_name = $1", key)
        return {"rows_affected": _affected_rows(status), "key": key}

    async def perform_list_all(self, conn: asyncpg.Connection, request: ValidationRequest) -> Dict[str, Any]:
        records = await conn.fetch(
            "SELECT id, key_name, value, created_at, updated_at FROM validation_test ORDER BY id"
        )
        rows = [
            {
                "id": record["id"],
                "key_name": record["key_name"],
                "value": record["value"],
                "created_at": _iso(record["created_at"]),
                "updated_at": _iso(record["updated_at"]),
            }
            for record in records
        ]
        return {"rows": rows, "count": len(rows)}

    async def perform_list_tables(self, conn: asyncpg.Connection, request: ValidationRequest) -> Dict[str, Any]:
        records = await conn.fetch(LIST_TABLES_SQL)
        tables = [
            {"name": record["table_name"], "type": record["table_type"], "rows": record["row_count"]}
            for record in records
        ]
        return {"tables": tables, "count": len(tables)}
