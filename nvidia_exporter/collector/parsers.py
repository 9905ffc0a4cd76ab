from __future__ import annotations

from typing import List, Sequence

from ..errors import ConfigurationError, FieldCountError, FieldValueError
from .stats import STATS, MetricDefinition, Sample

CSV_FORMAT = "--format=csv,noheader,nounits"
INDEX_FIELD = "index"
SEPARATOR = ", "

# -----------------------------
# Helpers
# -----------------------------

def _to_float(value: str) -> float:
    """float() without the leniency Python adds (padding, '1_000')."""
    if value != value.strip() or "_" in value:
        raise ValueError(f"could not convert string to float: {value!r}")
    return float(value)

# -----------------------------
# Public API
# -----------------------------

def interval_arg(seconds: float) -> str:
    """Whole seconds for `nvidia-smi -l`, rounded half-to-even.

    Raises ConfigurationError when that comes out below 1 (e.g. 0.4s).
    """
    whole = round(seconds)
    if whole < 1:
        raise ConfigurationError(
            f"interval must be at least 1 second (got {seconds:g}s, which rounds to {whole})"
        )
    return str(whole)


def query_fields(stats: Sequence[MetricDefinition] = STATS) -> List[str]:
    return [INDEX_FIELD] + [s.query_key for s in stats]


def build_command(
    tool: str, interval_seconds: float, stats: Sequence[MetricDefinition] = STATS
) -> List[str]:
    return [
        tool,
        "-l",
        interval_arg(interval_seconds),
        CSV_FORMAT,
        f"--query-gpu={','.join(query_fields(stats))}",
    ]


def split_line(line: str) -> List[str]:
    # This isn't real CSV parsing: nvidia-smi never quotes, and none of the
    # requested fields can contain ", ".
    if line.endswith("\n"):
        line = line[:-1]
    return line.split(SEPARATOR)


def parse_line(line: str, stats: Sequence[MetricDefinition] = STATS) -> Sample:
    """Parse one `index, field1, field2, ...` line into a Sample.

    Raises FieldCountError / FieldValueError; the line is never padded,
    truncated or partially applied.
    """
    data = split_line(line)
    if len(data) != len(stats) + 1:
        raise FieldCountError(line, expected=len(stats) + 1, actual=len(data))

    values = []
    for stat, raw in zip(stats, data[1:]):
        try:
            values.append(_to_float(raw))
        except ValueError as exc:
            raise FieldValueError(line, stat.query_key, raw, str(exc)) from exc
    return Sample(device_id=data[0], values=tuple(values))
