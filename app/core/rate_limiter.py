"""
=============================================================================
NOTEASE INTAKE - SUBMISSION RATE LIMITER
=============================================================================
Sliding-window limiter for the public form endpoints.

Features:
- Max N submissions per client IP in any 60-second window
- X-Forwarded-For honoured only when the direct peer is a trusted proxy
- In-memory, single instance (no shared backend)

Usage:
    from app.core.rate_limiter import check_submission_rate_limit

    @router.post("/contact", dependencies=[Depends(check_submission_rate_limit)])
    async def endpoint():
        ...
=============================================================================
"""

import ipaddress
import logging
import time
from collections import defaultdict, deque
from threading import Lock
from typing import Deque, Dict

from fastapi import HTTPException, Request, status

logger = logging.getLogger(__name__)

SUBMISSION_WINDOW_SECONDS = 60
DEFAULT_LIMIT_PER_MINUTE = 10

TRUSTED_PROXIES = ["127.0.0.1", "10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16"]
_trusted_networks = [ipaddress.ip_network(entry, strict=False) for entry in TRUSTED_PROXIES]

_submission_lock = Lock()
_submission_windows: Dict[str, Deque[float]] = defaultdict(deque)
_last_sweep = 0.0


def _is_trusted_proxy(ip_str: str) -> bool:
    """Check if an IP belongs to the trusted proxy ranges."""
    try:
        addr = ipaddress.ip_address(ip_str)
    except ValueError:
        return False
    return any(addr in net for net in _trusted_networks)


def get_client_ip(request: Request) -> str:
    """Extract client IP, trusting X-Forwarded-For only from trusted proxies."""
    direct_ip = request.client.host if request.client else "unknown"

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded and _is_trusted_proxy(direct_ip):
        parts = [p.strip() for p in forwarded.split(",")]
        # Rightmost untrusted hop is the real client
        for ip in reversed(parts):
            if not _is_trusted_proxy(ip):
                return ip
        return parts[0]

    return direct_ip


def _sweep_idle_windows(now: float, window_start: float) -> None:
    """Drop clients with no submission inside the window. Caller holds the lock."""
    global _last_sweep
    if now - _last_sweep < SUBMISSION_WINDOW_SECONDS:
        return
    _last_sweep = now
    idle = [
        ip
        for ip, window in _submission_windows.items()
        if not window or window[-1] < window_start
    ]
    for ip in idle:
        del _submission_windows[ip]


def _limit_for(request: Request) -> int:
    return getattr(request.app.state, "submission_rate_limit", DEFAULT_LIMIT_PER_MINUTE)


async def check_submission_rate_limit(request: Request) -> None:
    """
    Applies a sliding window of 60 seconds per IP across all form endpoints.
    """
    limit = _limit_for(request)
    client_ip = get_client_ip(request)
    now = time.time()
    window_start = now - SUBMISSION_WINDOW_SECONDS

    with _submission_lock:
        _sweep_idle_windows(now, window_start)
        ip_window = _submission_windows[client_ip]

        while ip_window and ip_window[0] < window_start:
            ip_window.popleft()

        if len(ip_window) >= limit:
            logger.warning(
                "Submission rate limit hit ip=%s",
                client_ip,
                extra={"event_name": "submission_rate_limited"},
            )
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Too many submissions. Max {limit} per minute.",
            )

        ip_window.append(now)


def reset_rate_limiter_state() -> None:
    """Clear rate limiter state. Intended for tests."""
    global _last_sweep
    with _submission_lock:
        _submission_windows.clear()
        _last_sweep = 0.0
