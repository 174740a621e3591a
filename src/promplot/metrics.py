"""Range queries against the Prometheus HTTP API.

Results are returned as a list of Series in the order the server sent
them. Sample values are kept as the strings the API returns ("1.5",
"NaN", "+Inf"); converting them is left to the plot renderer.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import requests

from .env import get_config
from .errors import FetchError
from . import log

QUERY_RANGE_PATH = "/api/v1/query_range"

# Label holding the metric name in a label set
METRIC_NAME_LABEL = "__name__"

# Status codes of servers that refuse POST for queries
_POST_UNSUPPORTED = (405, 501)


@dataclass(frozen=True)
class Query:
    """A range query: `duration` of data ending at `end`, in `samples` steps."""

    server: str
    expr: str
    end: datetime
    duration: timedelta
    samples: int = 100

    @property
    def start(self) -> datetime:
        return self.end - self.duration

    @property
    def step(self) -> timedelta:
        return self.duration / self.samples

    @property
    def url(self) -> str:
        return self.server.rstrip("/") + QUERY_RANGE_PATH

    def params(self) -> dict[str, str]:
        """Form parameters for the query_range endpoint (unix seconds)."""
        return {
            "query": self.expr,
            "start": str(self.start.timestamp()),
            "end": str(self.end.timestamp()),
            "step": str(self.step.total_seconds()),
        }


@dataclass
class Sample:
    """A single sample with timestamp and raw value string."""
    timestamp: datetime
    value: str


@dataclass
class Series:
    """One returned time series: its label set and samples."""

    metric: dict[str, str]
    samples: list[Sample] = field(default_factory=list)

    @property
    def name(self) -> str:
        """Metric in Prometheus notation, e.g. 'up{instance="a:9100", job="node"}'."""
        metric_name = self.metric.get(METRIC_NAME_LABEL, "")
        labels = sorted(
            f"{key}={_quote(value)}"
            for key, value in self.metric.items()
            if key != METRIC_NAME_LABEL
        )
        if not labels:
            return metric_name or "{}"
        return f"{metric_name}{{{', '.join(labels)}}}"

    @property
    def timestamps(self) -> list[datetime]:
        return [s.timestamp for s in self.samples]

    def __len__(self) -> int:
        return len(self.samples)


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def _send(query: Query, timeout: float) -> requests.Response:
    """POST the query, falling back to GET for servers that refuse POST."""
    params = query.params()
    response = requests.post(query.url, data=params, timeout=timeout)
    if response.status_code in _POST_UNSUPPORTED:
        log.debug(f"POST refused with HTTP {response.status_code}, retrying as GET")
        response = requests.get(query.url, params=params, timeout=timeout)
    return response


def _parse_series(item: dict[str, Any]) -> Series:
    samples = [
        Sample(
            timestamp=datetime.fromtimestamp(float(ts), tz=timezone.utc),
            value=str(value),
        )
        for ts, value in item.get("values", [])
    ]
    return Series(metric=dict(item.get("metric", {})), samples=samples)


def query_range(query: Query, timeout: Optional[float] = None) -> list[Series]:
    """Run a range query and return the resulting matrix.

    Args:
        query: Query to run
        timeout: Seconds per HTTP request (default from PROMPLOT_HTTP_TIMEOUT)

    Returns:
        Series in server order

    Raises:
        FetchError: On connection failures, API errors and non-matrix results
    """
    if timeout is None:
        timeout = get_config().http_timeout_s

    log.debug(f"Range query {query.url} {query.params()}")
    try:
        response = _send(query, timeout)
    except requests.RequestException as e:
        raise FetchError(f"failed to query prometheus api: {e}") from e

    try:
        body = response.json()
    except ValueError as e:
        if not response.ok:
            raise FetchError(
                f"failed to query prometheus api: server returned HTTP {response.status_code}"
            ) from e
        raise FetchError(f"failed to decode prometheus response: {e}") from e

    if not isinstance(body, dict):
        raise FetchError("failed to decode prometheus response: unexpected payload")

    if body.get("status") != "success" or not response.ok:
        error_type = body.get("errorType") or f"HTTP {response.status_code}"
        message = body.get("error") or "unknown error"
        raise FetchError(f"failed to query prometheus api: {error_type}: {message}")

    for warning in body.get("warnings") or []:
        log.debug(f"Prometheus warning: {warning}")

    data = body.get("data") or {}
    result_type = data.get("resultType")
    if result_type != "matrix":
        raise FetchError(f"unsupported result format: {result_type}")

    try:
        return [_parse_series(item) for item in data.get("result") or []]
    except (TypeError, ValueError, AttributeError) as e:
        raise FetchError(f"malformed range query result: {e}") from e


def fetch_metrics(
    server: str,
    expr: str,
    end: datetime,
    duration: timedelta,
    samples: Optional[int] = None,
) -> list[Series]:
    """Fetch `duration` worth of `expr` ending at `end` from `server`."""
    if samples is None:
        samples = get_config().samples
    query = Query(server=server, expr=expr, end=end, duration=duration, samples=samples)
    return query_range(query)
