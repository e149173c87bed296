# backend/core/query_logger.py

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict

from sqlalchemy import event
from sqlalchemy.engine import Engine

from core.config import get_settings

logger = logging.getLogger("sqlalchemy.engine")
query_logger = logging.getLogger("query_performance")

settings = get_settings()


class QueryLogger:
    """SQL query timing for development and debugging"""

    def __init__(self):
        self.enabled = settings.log_sql_queries
        self.slow_query_threshold = settings.slow_query_threshold_seconds
        self.query_stats: Dict[str, Any] = {
            "total_queries": 0,
            "slow_queries": 0,
            "total_time": 0.0,
        }

    def record(self, statement: str, elapsed: float):
        self.query_stats["total_queries"] += 1
        self.query_stats["total_time"] += elapsed

        if elapsed > self.slow_query_threshold:
            self.query_stats["slow_queries"] += 1
            query_logger.warning(f"SLOW QUERY ({elapsed:.3f}s): {statement[:200]}...")


# Singleton instance
query_logger_instance = QueryLogger()


def setup_query_logging(engine: Engine):
    """
    Attach connection setup and (optionally) query timing to an engine.

    SQLite connections always get foreign key enforcement; timing listeners
    are only registered when LOG_SQL_QUERIES is on.
    """
    if engine.url.get_backend_name() == "sqlite":

        @event.listens_for(engine, "connect")
        def enable_sqlite_foreign_keys(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys = ON")
            cursor.close()

    if not query_logger_instance.enabled:
        return

    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_start_time", []).append(time.perf_counter())
        logger.debug("Start Query: %s", statement)

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        elapsed = time.perf_counter() - conn.info["query_start_time"].pop(-1)
        query_logger_instance.record(statement, elapsed)
        logger.debug("Query Complete in %.3fs", elapsed)


@contextmanager
def log_query_performance(operation_name: str):
    """
    Context manager to log the query count and time of a database operation

    Example:
        with log_query_performance("credit_history"):
            entries = db.query(CreditLedgerEntry).filter(...).all()
    """
    if not query_logger_instance.enabled:
        yield
        return

    start_queries = query_logger_instance.query_stats["total_queries"]
    start_time = time.perf_counter()

    try:
        yield
    finally:
        elapsed_time = time.perf_counter() - start_time
        query_count = query_logger_instance.query_stats["total_queries"] - start_queries

        query_logger.info(
            f"Operation '{operation_name}': {query_count} queries in {elapsed_time:.3f}s"
        )
