"""
MySQL validation service
"""

import asyncio
import logging
from typing import Any, AsyncContextManager, Dict, List, Optional, Sequence, Tuple

from pymysql.connections import Connection

from binding_validator.database.connection import open_mysql, relational_settings
from binding_validator.models.enums import BackendKind
from binding_validator.models.validation import ValidationRequest
from binding_validator.services.base_service import BaseValidationService, millis_suffix

logger = logging.getLogger(__name__)

CREATE_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS validation_test (
        id INT AUTO_INCREMENT PRIMARY KEY,
        key_name VARCHAR(255) NOT NULL,
        value VARCHAR(255),
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP
    )
"""

LIST_TABLES_SQL = """
    SELECT TABLE_NAME, TABLE_TYPE, TABLE_ROWS, DATA_LENGTH
    FROM INFORMATION_SCHEMA.TABLES
    WHERE TABLE_SCHEMA = DATABASE()
    ORDER BY TABLE_NAME
"""

QueryResult = Tuple[int, List[Dict[str, Any]], Optional[int]]


def _run_query(conn: Connection, sql: str, args: Optional[Sequence[Any]] = None) -> QueryResult:
    with conn.cursor() as cur:
        rows_affected = cur.execute(sql, args)
        return rows_affected, list(cur.fetchall()), cur.lastrowid


async def execute(conn: Connection, sql: str, args: Optional[Sequence[Any]] = None) -> QueryResult:
    """
    Run one statement off the event loop.

    Returns (rows affected, fetched rows as dicts, last inserted id).
    """
    return await asyncio.to_thread(_run_query, conn, sql, args)


def _iso(value: Any) -> Any:
    return value.isoformat() if value is not None else None


class MysqlValidationService(BaseValidationService):
    """Read/write validation against the first bound MySQL service"""

    SERVICE_NAME = "MySQL"
    KIND = BackendKind.MYSQL
    OPERATIONS = {
        "read": "perform_read",
        "write": "perform_write",
        "update": "perform_update",
        "delete": "perform_delete",
        "listall": "perform_list_all",
        "listtables": "perform_list_tables",
    }

    def connect(self) -> AsyncContextManager[Connection]:
        conn_settings = relational_settings(self.credentials, self.KIND)
        logger.info(f"Connecting to MySQL at {conn_settings.describe()}")
        return open_mysql(conn_settings)

    async def prepare(self, conn: Connection) -> None:
        await execute(conn, CREATE_TABLE_SQL)

    async def perform_read(self, conn: Connection, request: ValidationRequest) -> Dict[str, Any]:
        key = request.key or "test"
        _, rows, _ = await execute(conn, "SELECT * FROM validation_test WHERE key_name = %s", (key,))
        if not rows:
            return {"found": False, "key": key}
        row = rows[0]
        return {
            "found": True,
            "id": row["id"],
            "key": row["key_name"],
            "value": row["value"],
            "created_at": _iso(row["created_at"]),
        }

    async def perform_write(self, conn: Connection, request: ValidationRequest) -> Dict[str, Any]:
        key = request.key or f"test_{millis_suffix()}"
        value = request.value if request.value is not None else "test_value"
        rows_affected, _, generated_id = await execute(
            conn, "INSERT INTO validation_test (key_name, value) VALUES (%s, %s)", (key, value)
        )
        result = {"rows_affected": rows_affected, "key": key}
        if rows_affected > 0:
            result["generated_id"] = generated_id
        return result

    async def perform_update(self, conn: Connection, request: ValidationRequest) -> Dict[str, Any]:
        key = request.key or "test"
        value = request.value if request.value is not None else "updated_value"
        rows_affected, _, _ = await execute(
            conn, "UPDATE validation_test SET value = %s WHERE key_name = %s", (value, key)
        )
        return {"rows_affected": rows_affected, "key": key}

    async def perform_delete(self, conn: Connection, request: ValidationRequest) -> Dict[str, Any]:
        key = request.key or "test"
        rows_affected, _, _ = await execute(conn, "DELETE FROM validation_test WHERE key_name = %s", (key,))
        return {"rows_affected": rows_affected, "key": key}

    async def perform_list_all(self, conn: Connection, request: ValidationRequest) -> Dict[str, Any]:
        _, records, _ = await execute(
            conn, "SELECT id, key_name, value, created_at, updated_at FROM validation_test ORDER BY id"
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

    async def perform_list_tables(self, conn: Connection, request: ValidationRequest) -> Dict[str, Any]:
        _, records, _ = await execute(conn, LIST_TABLES_SQL)
        tables = [
            {
                "name": record["TABLE_NAME"],
                "type": record["TABLE_TYPE"],
                "rows": record["TABLE_ROWS"] or 0,
                "data_length": record["DATA_LENGTH"] or 0,
            }
            for record in records
        ]
        return {"tables": tables, "count": len(tables)}
