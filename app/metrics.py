from prometheus_client import Counter, Histogram
# Prometheus metrics definitions

# Case study generation requests, labelled by outcome
case_study_requests_total = Counter(
    "case_study_requests_total", "Total case study generation requests", ["outcome"]
)

# Three sequential provider calls; image generation dominates
_generation_latency_buckets = (
    2.0,
    5.0,
    10.0,
    20.0,
    40.0,
    80.0,
)

case_study_latency_seconds = Histogram(
    "case_study_latency_seconds",
    "Case study generation latency",
    buckets=_generation_latency_buckets,
)

# Rejections when any quota dimension is exhausted
quota_reject_total = Counter(
    "quota_reject_total", "Number of quota rejected requests", ["limit_type"]
)

rate_limit_reject_total = Counter(
    "rate_limit_reject_total", "Number of rate limited requests", ["scope"]
)

# Failed OpenAI calls per orchestration step
provider_error_total = Counter(
    "provider_error_total", "Number of failed provider calls", ["step"]
)

# Case studies generated but not stored
persistence_error_total = Counter(
    "persistence_error_total", "Number of failed case study writes"
)
