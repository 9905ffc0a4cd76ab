import queue

from nvidia_exporter import cli
from nvidia_exporter.errors import FieldCountError, ListenerError


class FakeServer:
    should_exit = False


def test_subsecond_interval_exits_before_spawning(monkeypatch):
    spawned = []
    monkeypatch.setattr(cli.Sampler, "start", lambda self: spawned.append(self))
    assert cli.main(["--interval", "400ms"]) == 1
    assert spawned == []


def test_first_failure_ends_process(monkeypatch):
    server = FakeServer()

    def fake_start(self):
        self.failures.put(FieldCountError("1, 512, 8192, 10\n", expected=7, actual=4))

    monkeypatch.setattr(cli.Sampler, "start", fake_start)
    monkeypatch.setattr(cli, "start_listener", lambda registry, port, failures: server)

    assert cli.main(["--port", "0"]) == 1
    assert server.should_exit


def test_listener_stop_is_reported():
    failures = queue.Queue()

    class StoppedServer:
        config = type("C", (), {"port": 9523})()

        def run(self):
            raise SystemExit(1)

    cli._serve(StoppedServer(), failures)
    assert isinstance(failures.get_nowait(), ListenerError)
