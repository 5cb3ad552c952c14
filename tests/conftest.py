import threading
from collections.abc import Iterator

import pytest

from shared.dev_server import make_server


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DEBUG_REQUEST_LOG", raising=False)
    monkeypatch.delenv("UPSTREAM_TIMEOUT_S", raising=False)


@pytest.fixture
def dev_server() -> Iterator[str]:
    """Run the dev server on an ephemeral port and yield its base URL."""
    server = make_server("127.0.0.1", 0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)
