import hashlib
import logging
from typing import Callable, Optional, TypeVar

from common.config.env import get_env_bool, get_env_str
from dal.util.statements import classify_statement

logger = logging.getLogger(__name__)

T = TypeVar("T")


def trace_enabled() -> bool:
    """Return True when DAL query tracing is enabled or an OTEL exporter is configured."""
    try:
        explicit = get_env_bool("DAL_TRACE_QUERIES")
    except ValueError:
        logger.warning("Invalid DAL_TRACE_QUERIES value; query tracing disabled.")
        return False
    if explicit is not None:
        return explicit
    return bool((get_env_str("OTEL_EXPORTER_OTLP_ENDPOINT") or "").strip())


def _hash_sql(sql: str) -> str:
    return hashlib.sha256(sql.encode("utf-8")).hexdigest()


def trace_query_operation(
    name: str,
    provider: str,
    sql: Optional[str],
    operation: Callable[[], T],
) -> T:
    """Run a driver operation inside an OTEL span when tracing is enabled."""
    if not trace_enabled():
        return operation()

    from opentelemetry import trace

    tracer = trace.get_tracer("dal")
    with tracer.start_as_current_span(name) as span:
        span.set_attribute("db.provider", provider)
        span.set_attribute("db.execution_model", "sync")
        if sql:
            span.set_attribute("db.operation", classify_statement(sql, provider))
            span.set_attribute("db.statement_hash", _hash_sql(sql))
        try:
            result = operation()
            span.set_attribute("db.status", "ok")
            return result
        except Exception:
            span.set_attribute("db.status", "error")
            raise
