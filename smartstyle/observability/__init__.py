# Observability module
from smartstyle.observability.logger import log_request, is_logging_enabled
from smartstyle.observability.metrics import (
    increment_request,
    increment_rate_limited,
    increment_weather_failure,
    get_metrics,
    reset_metrics,
)
