"""Capture pipeline exports."""

from .boot import BootDetector, BootOutcome, BootState
from .engine import CaptureEngine
from .navigation import NavigationStep, Navigator
from .result import (
    CaptureFailure,
    CaptureResult,
    CaptureSuccess,
    StatusInfo,
    UsageBucket,
    to_json,
    to_payload,
)
from .scraper import extract_status, extract_usage, scrape_usage

__all__ = [
    "BootDetector",
    "BootOutcome",
    "BootState",
    "CaptureEngine",
    "CaptureFailure",
    "CaptureResult",
    "CaptureSuccess",
    "NavigationStep",
    "Navigator",
    "StatusInfo",
    "UsageBucket",
    "extract_status",
    "extract_usage",
    "scrape_usage",
    "to_json",
    "to_payload",
]
