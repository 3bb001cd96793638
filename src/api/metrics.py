import logging
import time

from prometheus_client import Counter, Histogram, Gauge, REGISTRY

logger = logging.getLogger(__name__)


# we check if they are already registered to avoid errors during hot reloads or test runs
def get_or_create_metric(name, documentation, metric_type, **kwargs):
    try:
        return metric_type(name, documentation, **kwargs)
    except ValueError:
        # Already registered: hand back the existing collector
        return REGISTRY._names_to_collectors[name]


REQUESTS_TOTAL = get_or_create_metric(
    "zenith_requests_total",
    "Total requests",
    Counter,
    labelnames=["endpoint", "status"],
)

REQUEST_LATENCY_SECONDS = get_or_create_metric(
    "zenith_request_latency_seconds",
    "Request latency",
    Histogram,
    labelnames=["endpoint"],
)

LLM_CALLS_TOTAL = get_or_create_metric(
    "zenith_llm_calls_total",
    "AI gateway operations invoked",
    Counter,
    labelnames=["operation"],
)

FUNCTION_CALLS_TOTAL = get_or_create_metric(
    "zenith_function_calls_total",
    "Backend function invocations",
    Counter,
    labelnames=["function", "status"],
)

TASK_COUNT = get_or_create_metric(
    "zenith_tasks", "Tasks currently held by the store", Gauge
)


def observe_request(endpoint: str, status: str, start: float) -> None:
    """Best-effort request counter and latency sample."""
    try:
        REQUESTS_TOTAL.labels(endpoint=endpoint, status=status).inc()
        REQUEST_LATENCY_SECONDS.labels(endpoint=endpoint).observe(time.time() - start)
    except Exception as e:
        logger.debug(f"Could not record metrics for {endpoint}: {e}")
