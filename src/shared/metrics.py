# metrics.py
"""Prometheus metrics for the maze server and the mirror transformer."""

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

# 0. Global Registry
REGISTRY = CollectorRegistry()

# 1. Counters
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests.",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
)
MAZE_PAGES_GENERATED = Counter(
    "maze_pages_generated_total",
    "Total maze pages generated.",
    registry=REGISTRY,
)
MAZE_TOKENS_GENERATED = Counter(
    "maze_tokens_generated_total",
    "Total tokens emitted into maze pages.",
    registry=REGISTRY,
)
DECOY_LINKS_INJECTED = Counter(
    "maze_decoy_links_injected_total",
    "Total decoy resource links injected into generated documents.",
    registry=REGISTRY,
)
MIRROR_FILES_PROCESSED = Counter(
    "mirror_files_processed_total",
    "Total files handled by the mirror transformer.",
    ["kind", "outcome"],
    registry=REGISTRY,
)

# 2. Histograms
REQUEST_LATENCY = Histogram(
    "http_request_latency_seconds",
    "HTTP request latency in seconds.",
    ["method", "endpoint"],
    registry=REGISTRY,
)
PAGE_TOKEN_COUNT = Histogram(
    "maze_page_tokens",
    "Number of tokens per generated maze page.",
    buckets=(0, 100, 250, 500, 1000, 2500, 5000, 10000, 25000),
    registry=REGISTRY,
)


def record_request(method, endpoint, status_code):
    REQUEST_COUNT.labels(
        method=method, endpoint=endpoint, status_code=str(status_code)
    ).inc()


def record_page(token_count: int) -> None:
    MAZE_PAGES_GENERATED.inc()
    MAZE_TOKENS_GENERATED.inc(token_count)
    PAGE_TOKEN_COUNT.observe(token_count)


def record_mirror_file(kind: str, outcome: str) -> None:
    MIRROR_FILES_PROCESSED.labels(kind=kind, outcome=outcome).inc()


def get_metrics():
    return generate_latest(REGISTRY)
