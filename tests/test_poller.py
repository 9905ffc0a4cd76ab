# tests/test_poller.py
import io
import itertools
import queue

import pytest

from nvidia_exporter.collector import poller
from nvidia_exporter.collector.poller import Sampler
from nvidia_exporter.collector.stats import LAST_UPDATED_NAME
from nvidia_exporter.errors import (
    ConfigurationError,
    FieldCountError,
    FieldValueError,
    ToolIOError,
)

GOOD = "0, 1024, 8192, 15, 3, 42, 120.5\n"


class FakePopen:
    instances = []
    output = ""

    def __init__(self, cmd, stdout=None, text=None, bufsize=None):
        self.cmd = cmd
        self.stdout = io.StringIO(FakePopen.output)
        self.killed = False
        FakePopen.instances.append(self)

    def poll(self):
        return -9 if self.killed else None

    def kill(self):
        self.killed = True

    def wait(self):
        return -9


@pytest.fixture
def fake_smi(monkeypatch):
    FakePopen.instances = []
    FakePopen.output = ""
    monkeypatch.setattr(poller.subprocess, "Popen", FakePopen)
    return FakePopen


@pytest.fixture
def sampler(registry):
    return Sampler(registry, clock=itertools.count(1000).__next__)


def test_apply_sets_every_gauge(sampler, registry):
    sample = sampler.apply(GOOD)
    assert sample.device_id == "0"
    assert registry.value("nvidia_memory_used_megabytes", "0") == 1024
    assert registry.value("nvidia_memory_total_megabytes", "0") == 8192
    assert registry.value("nvidia_gpu_utilization_percent", "0") == 15
    assert registry.value("nvidia_memory_utilization_percent", "0") == 3
    assert registry.value("nvidia_temperature_celsius", "0") == 42
    assert registry.value("nvidia_power_draw_watts", "0") == 120.5
    assert registry.value(LAST_UPDATED_NAME) == 1000


def test_devices_are_labeled_separately(sampler, registry):
    sampler.apply(GOOD)
    sampler.apply("1, 10, 16384, 99, 50, 70, 250\n")
    assert registry.value("nvidia_temperature_celsius", "0") == 42
    assert registry.value("nvidia_temperature_celsius", "1") == 70


def test_timestamp_moves_only_on_good_lines(sampler, registry):
    sampler.apply(GOOD)
    assert registry.value(LAST_UPDATED_NAME) == 1000
    sampler.apply(GOOD)
    assert registry.value(LAST_UPDATED_NAME) == 1001

    with pytest.raises(FieldValueError):
        sampler.apply("0, abc, 8192, 15, 3, 42, 120.5\n")
    assert registry.value(LAST_UPDATED_NAME) == 1001


def test_bad_line_updates_nothing(sampler, registry):
    with pytest.raises(FieldCountError):
        sampler.apply("1, 512, 8192, 10\n")
    assert registry.value("nvidia_memory_used_megabytes", "1") is None
    assert registry.value(LAST_UPDATED_NAME) == 0.0


def test_consume_stops_at_end_of_stream(sampler, registry):
    with pytest.raises(ToolIOError, match="stream closed"):
        sampler.consume(io.StringIO(GOOD + GOOD))
    assert registry.value("nvidia_power_draw_watts", "0") == 120.5


def test_consume_rejects_partial_last_line(sampler):
    with pytest.raises(ToolIOError, match="partial line"):
        sampler.consume(io.StringIO(GOOD + "1, 512"))


def test_consume_read_error(sampler):
    stream = io.StringIO(GOOD)
    stream.close()
    with pytest.raises(ToolIOError):
        sampler.consume(stream)


def test_interval_rounding_to_zero_spawns_nothing(registry, fake_smi):
    with pytest.raises(ConfigurationError):
        Sampler(registry, interval=0.4)
    assert fake_smi.instances == []


def test_run_reports_malformed_output(sampler, registry, fake_smi):
    fake_smi.output = GOOD + "0, abc, 8192, 15, 3, 42, 120.5\n" + GOOD
    sampler.run()

    failure = sampler.failures.get_nowait()
    assert isinstance(failure, FieldValueError)
    assert failure.line == "0, abc, 8192, 15, 3, 42, 120.5\n"
    proc = fake_smi.instances[0]
    assert proc.cmd == sampler.command
    assert proc.killed
    assert registry.value("nvidia_memory_used_megabytes", "0") == 1024


def test_run_reports_tool_exit(sampler, fake_smi):
    fake_smi.output = GOOD
    sampler.run()
    assert isinstance(sampler.failures.get_nowait(), ToolIOError)


def test_run_reports_missing_tool(registry):
    failures = queue.Queue()
    sampler = Sampler(registry, tool="/nonexistent/nvidia-smi", failures=failures)
    sampler.run()
    failure = failures.get_nowait()
    assert isinstance(failure, ToolIOError)
    assert failure.command[0] == "/nonexistent/nvidia-smi"


def test_start_runs_in_background(sampler, fake_smi):
    fake_smi.output = GOOD
    thread = sampler.start()
    thread.join(timeout=5)
    assert not thread.is_alive()
    assert isinstance(sampler.failures.get(timeout=1), ToolIOError)
