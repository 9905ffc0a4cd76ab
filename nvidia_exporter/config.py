# nvidia_exporter/config.py
from __future__ import annotations

import argparse
import logging
import math
import os
import re
from typing import List

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError

# *** How to override at runtime:
# export NVIDIA_EXPORTER_INTERVAL=10s
# export NVIDIA_EXPORTER_PORT=9523
# export NVIDIA_EXPORTER_LOG_LEVEL=DEBUG
# nvidia-exporter

DEFAULT_INTERVAL = os.getenv("NVIDIA_EXPORTER_INTERVAL", "5s")
DEFAULT_PORT = os.getenv("NVIDIA_EXPORTER_PORT", "9523")
LOG_LEVEL = os.getenv("NVIDIA_EXPORTER_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s  %(levelname)s %(message)s"

_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    interval: float = Field(description="poll interval in seconds")
    port: int = Field(ge=0, le=65535)


def parse_duration(text: str) -> float:
    """Turn '5s', '500ms', '1m30s' (or a bare '5') into seconds."""
    s = text.strip()
    if not s:
        raise ConfigurationError("empty duration")
    try:
        seconds = float(s)
    except ValueError:
        pass
    else:
        if not math.isfinite(seconds):
            raise ConfigurationError(f"invalid duration {text!r}")
        return seconds

    sign = 1.0
    if s[0] in "+-":
        sign = -1.0 if s[0] == "-" else 1.0
        s = s[1:]

    total, pos = 0.0, 0
    for match in _DURATION_PART.finditer(s):
        if match.start() != pos:
            break
        number, unit = match.groups()
        total += float(number) * _UNITS[unit]
        pos = match.end()
    if not s or pos != len(s):
        raise ConfigurationError(f"invalid duration {text!r}")
    return sign * total


def _duration_arg(text: str) -> float:
    try:
        return parse_duration(text)
    except ConfigurationError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nvidia-exporter",
        description="Expose nvidia-smi statistics as Prometheus metrics",
    )
    parser.add_argument(
        "--interval",
        type=_duration_arg,
        default=DEFAULT_INTERVAL,
        help="how often to request stats from nvidia-smi (default: %(default)s)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help="http port to expose metrics on (default: %(default)s)",
    )
    return parser


def parse_args(argv: List[str] | None = None) -> Settings:
    # argparse runs string defaults through `type`, so env values get validated too
    args = build_parser().parse_args(argv)
    try:
        return Settings(interval=args.interval, port=args.port)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid settings: {exc}") from exc


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
