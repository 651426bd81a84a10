"""
moviestream/observability/metrics.py

This module contains Prometheus metrics definitions.
Keeping metrics in a dedicated module prevents circular imports
between FastAPI app startup (main.py) and the routers / request modules.
"""

from prometheus_client import Counter


"""
Global Prometheus counter for catalog read requests.
Labels:
    endpoint: Name of endpoint
    result: success or failure
"""
CATALOG_REQUESTS = Counter(
    name="catalog_requests_total",
    documentation="Total number of movie catalog requests.",
    labelnames=["endpoint", "result"],
)


"""
Counter for review submissions.
Labels:
    result: created, invalid, already_reviewed, not_found or conflict
"""
REVIEW_SUBMISSIONS = Counter(
    name="review_submissions_total",
    documentation="Total number of movie review submissions.",
    labelnames=["result"],
)
