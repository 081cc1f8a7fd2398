"""
pytest configuration and fixtures.
"""

import socket
import threading
import time
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Dict, Generator, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from recorderapi import ControlService, ServiceConfig, RecorderController


class FakeRecorder(RecorderController):
    """
    Controller double that records every command.

    State is plain attributes so tests can put the recorder in any state;
    commands update it the way a real recorder would.
    """

    def __init__(self, recording: bool = False, paused: bool = False,
                 file_name: str = "", file_size: int = 0, time_ms: int = 0):
        self.recording = recording
        self.paused = paused
        self.file_name = file_name
        self.file_size = file_size
        self.time_ms = time_ms
        self.calls: Counter = Counter()
        self.confirm_args: list[tuple[str, bool]] = []
        self.fail_queries = False

    def is_recording(self) -> bool:
        if self.fail_queries:
            raise RuntimeError("recorder exploded")
        return self.recording

    def is_paused(self) -> bool:
        if self.fail_queries:
            raise RuntimeError("recorder exploded")
        return self.paused

    def current_file_name(self) -> str:
        return self.file_name

    def current_file_size(self) -> int:
        return self.file_size

    def total_time(self) -> int:
        return self.time_ms

    def start(self) -> None:
        self.calls["start"] += 1
        self.recording, self.paused = True, False

    def toggle_pause(self) -> None:
        self.calls["toggle_pause"] += 1
        self.paused = not self.paused

    def pause(self) -> None:
        self.calls["pause"] += 1
        self.paused = True

    def save(self, confirm: bool) -> None:
        self.calls["save"] += 1
        self.confirm_args.append(("save", confirm))
        self.recording, self.paused = False, False

    def cancel(self, confirm: bool) -> None:
        self.calls["cancel"] += 1
        self.confirm_args.append(("cancel", confirm))
        self.recording, self.paused = False, False


@dataclass
class RawResponse:
    """An HTTP response as read off the socket."""

    status: int
    phrase: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    raw: bytes = b""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")


def parse_raw_response(raw: bytes) -> RawResponse:
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("utf-8").split("\r\n")
    _version, code, phrase = lines[0].split(" ", 2)
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip()] = value.strip()
    return RawResponse(status=int(code), phrase=phrase, headers=headers, body=body, raw=raw)


def read_until_eof(sock: socket.socket) -> bytes:
    chunks = []
    while True:
        chunk = sock.recv(4096)
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)


class TestServer:
    """Runs a ControlService event loop in a background thread."""

    __test__ = False

    def __init__(self, service: ControlService):
        self.service = service
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.service.port

    def start(self):
        if not self.service.start(0):
            raise RuntimeError("Server failed to start")

        self._thread = threading.Thread(
            target=self.service.serve_forever,
            kwargs={"poll_interval": 0.05},
            daemon=True,
        )
        self._thread.start()

    def stop(self):
        self.service.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def connect(self) -> socket.socket:
        return socket.create_connection(("127.0.0.1", self.port), timeout=5.0)

    def request(self, raw: bytes) -> RawResponse:
        """Send raw bytes and read the response until the server closes."""
        with self.connect() as sock:
            sock.sendall(raw)
            return parse_raw_response(read_until_eof(sock))

    def wait_for(self, predicate, timeout: float = 5.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(0.02)
        return predicate()


@pytest.fixture
def recorder() -> FakeRecorder:
    """An idle fake recorder."""
    return FakeRecorder()


@pytest.fixture
def config() -> ServiceConfig:
    """Loopback test configuration on an OS-assigned port."""
    return ServiceConfig(host="127.0.0.1", port=0, log_level="WARNING")


@pytest.fixture
def service(recorder: FakeRecorder, config: ServiceConfig) -> Generator[ControlService, None, None]:
    """A constructed but not started service."""
    svc = ControlService(recorder, config)
    yield svc
    svc.close()


@pytest.fixture
def test_server(service: ControlService) -> Generator[TestServer, None, None]:
    """A service running its event loop in a background thread."""
    srv = TestServer(service)
    srv.start()

    yield srv

    srv.stop()


@pytest.fixture
def server_factory(recorder: FakeRecorder, config: ServiceConfig):
    """Start extra servers with config overrides, e.g. idle_timeout=0.2."""
    servers = []

    def factory(**overrides) -> TestServer:
        svc = ControlService(recorder, replace(config, **overrides))
        srv = TestServer(svc)
        srv.start()
        servers.append(srv)
        return srv

    yield factory

    for srv in servers:
        srv.stop()
