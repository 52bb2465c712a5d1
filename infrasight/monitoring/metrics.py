import time
import datetime
import psutil
from typing import Dict, Optional, Tuple

class MetricsCollector:
    """In-process request, error, rate-limit and ingestion counters.

    Cache and limiter keep their own stats; they are passed in when a
    snapshot is taken so there is one place that renders everything.
    """

    def __init__(self):
        self.start_time = time.time()
        self.request_latency: Dict[Tuple[str, str], dict] = {}
        self.request_counts: Dict[Tuple[str, str, int], int] = {}
        self.errors: Dict[str, int] = {}
        self.rate_limit_hits: Dict[str, int] = {}
        self.ingestion = {"total": 0, "errors": 0, "last_batch_size": 0, "last_batch_time": None}

    def record_request(self, method: str, path: str, status_code: int, duration_ms: float):
        key = (method, path)
        stats = self.request_latency.get(key)
        if stats is None:
            stats = {"count": 0, "sum": 0.0, "min": duration_ms, "max": duration_ms}
            self.request_latency[key] = stats

        stats["count"] += 1
        stats["sum"] += duration_ms
        stats["min"] = min(stats["min"], duration_ms)
        stats["max"] = max(stats["max"], duration_ms)

        count_key = (method, path, status_code)
        self.request_counts[count_key] = self.request_counts.get(count_key, 0) + 1

    def record_error(self, code: str):
        self.errors[code] = self.errors.get(code, 0) + 1

    def record_rate_limit_hit(self, kind: str):
        self.rate_limit_hits[kind] = self.rate_limit_hits.get(kind, 0) + 1

    def record_ingestion(self, batch_size: int, error_count: int):
        self.ingestion["total"] += batch_size
        self.ingestion["errors"] += error_count
        self.ingestion["last_batch_size"] = batch_size
        self.ingestion["last_batch_time"] = datetime.datetime.now(datetime.timezone.utc).isoformat()

    def snapshot(self, cache_stats: Optional[dict] = None, limiter_stats: Optional[dict] = None) -> dict:
        latency = {
            f"{method}:{path}": {
                "count": stats["count"],
                "avg_duration_ms": round(stats["sum"] / stats["count"], 2),
                "min_duration_ms": round(stats["min"], 2),
                "max_duration_ms": round(stats["max"], 2)
            }
            for (method, path), stats in self.request_latency.items()
        }
        counts = {
            f"{method}:{path}:{status}": value
            for (method, path, status), value in self.request_counts.items()
        }

        cache_stats = dict(cache_stats or {})
        lookups = cache_stats.get("hits", 0) + cache_stats.get("misses", 0)
        cache_stats["hit_rate"] = f"{cache_stats.get('hits', 0) / lookups * 100:.2f}%" if lookups else "0.00%"

        total = self.ingestion["total"]
        success_rate = (total - self.ingestion["errors"]) / total * 100 if total else 100

        return {
            "requests": {"latency": latency, "counts": counts},
            "errors": dict(self.errors),
            "rate_limit": {"hits": dict(self.rate_limit_hits), "limiter": limiter_stats},
            "cache": cache_stats,
            "ingestion": {**self.ingestion, "success_rate": f"{success_rate:.2f}%"},
            "process": {
                "uptime_seconds": int(time.time() - self.start_time),
                "memory_usage_mb": f"{psutil.Process().memory_info().rss / 1024 / 1024:.1f}"
            },
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat()
        }

    def prometheus(self, cache_stats: Optional[dict] = None) -> str:
        cache_stats = cache_stats or {}
        lines = [
            "# HELP http_request_duration_ms HTTP request latency in milliseconds",
            "# TYPE http_request_duration_ms summary"
        ]
        for (method, path), stats in self.request_latency.items():
            labels = f'method="{method}",path="{path}"'
            lines.append(f"http_request_duration_ms_count{{{labels}}} {stats['count']}")
            lines.append(f"http_request_duration_ms_sum{{{labels}}} {stats['sum']:.3f}")

        lines += ["# HELP http_requests_total Total number of HTTP requests", "# TYPE http_requests_total counter"]
        for (method, path, status), value in self.request_counts.items():
            lines.append(f'http_requests_total{{method="{method}",path="{path}",status="{status}"}} {value}')

        lines += ["# HELP api_errors_total Total number of API errors by code", "# TYPE api_errors_total counter"]
        for code, value in self.errors.items():
            lines.append(f'api_errors_total{{code="{code}"}} {value}')

        lines += ["# HELP rate_limit_hits_total Total number of rate limit hits", "# TYPE rate_limit_hits_total counter"]
        for kind, value in self.rate_limit_hits.items():
            lines.append(f'rate_limit_hits_total{{type="{kind}"}} {value}')

        for name, key in (("cache_hits_total", "hits"), ("cache_misses_total", "misses")):
            lines += [f"# TYPE {name} counter", f"{name} {cache_stats.get(key, 0)}"]

        lines += [
            "# TYPE ingestion_readings_total counter",
            f"ingestion_readings_total {self.ingestion['total']}",
            "# TYPE ingestion_errors_total counter",
            f"ingestion_errors_total {self.ingestion['errors']}"
        ]
        return "\n".join(lines) + "\n"
