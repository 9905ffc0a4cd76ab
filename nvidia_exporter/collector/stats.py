# collector/stats.py
from __future__ import annotations

from typing import Tuple

from pydantic import BaseModel, ConfigDict

DEVICE_LABEL = "device"


class MetricDefinition(BaseModel):
    """One `--query-gpu` field and the gauge it is exported as."""

    model_config = ConfigDict(frozen=True)

    query_key: str
    exposed_name: str
    help_text: str
    labels: Tuple[str, ...] = (DEVICE_LABEL,)


class Sample(BaseModel):
    """One parsed output line: a device and its values in query order."""

    model_config = ConfigDict(frozen=True)

    device_id: str
    values: Tuple[float, ...]


# Order matters: nvidia-smi prints the fields in the order they were queried.
STATS: Tuple[MetricDefinition, ...] = (
    MetricDefinition(
        query_key="memory.used",
        exposed_name="nvidia_memory_used_megabytes",
        help_text="Total memory allocated by active contexts",
    ),
    MetricDefinition(
        query_key="memory.total",
        exposed_name="nvidia_memory_total_megabytes",
        help_text="Total installed GPU memory",
    ),
    MetricDefinition(
        query_key="utilization.gpu",
        exposed_name="nvidia_gpu_utilization_percent",
        help_text="Percent of time over the past sample period during which "
        "one or more kernels was executing on the GPU",
    ),
    MetricDefinition(
        query_key="utilization.memory",
        exposed_name="nvidia_memory_utilization_percent",
        help_text="Percent of time over the past sample period during which "
        "global (device) memory was being read or written",
    ),
    MetricDefinition(
        query_key="temperature.gpu",
        exposed_name="nvidia_temperature_celsius",
        help_text="Core GPU temperature",
    ),
    MetricDefinition(
        query_key="power.draw",
        exposed_name="nvidia_power_draw_watts",
        help_text="The last measured power draw for the entire board",
    ),
)

LAST_UPDATED_NAME = "nvidia_last_updated_time"
LAST_UPDATED_HELP = "Last time that we read output from nvidia-smi"
