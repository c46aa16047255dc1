from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

HTTP_REQUESTS = Counter(
    'messagely_http_requests_total',
    'HTTP requests by route and status',
    ['method', 'route', 'status'],
)
HTTP_LATENCY = Histogram(
    'messagely_http_request_duration_seconds',
    'HTTP request latency',
    ['method', 'route'],
)


def observe_request(method: str, route: str, status: int, seconds: float) -> None:
    HTTP_REQUESTS.labels(method=method, route=route, status=str(status)).inc()
    HTTP_LATENCY.labels(method=method, route=route).observe(seconds)


def render_metrics() -> tuple[bytes, str]:
    """Return the exposition payload and its content type."""
    return generate_latest(), CONTENT_TYPE_LATEST
