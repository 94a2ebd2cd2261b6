import json
from typing import Any, Callable, Dict, List, Optional

import pytest
from typer.testing import CliRunner

from apiwarden.domain.interfaces.transport import Transport, TransportResponse
from apiwarden.infrastructure.config.settings import clear_test_config, reset_configuration


class FakeTransport(Transport):
    """Records every request and answers with ``responder``."""

    def __init__(self, responder: Callable[..., TransportResponse]):
        self.responder = responder
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def send(self, method, url, headers, body=None, params=None) -> TransportResponse:
        call = {
            "method": method,
            "url": url,
            "headers": dict(headers),
            "body": None if body is None else json.loads(body),
            "params": dict(params) if params else None,
        }
        self.calls.append(call)
        return self.responder(**call)

    def close(self) -> None:
        self.closed = True


def json_response(payload: Any, status_code: int = 200, headers: Optional[Dict[str, str]] = None) -> TransportResponse:
    return TransportResponse(status_code=status_code, body=json.dumps(payload).encode(), headers=headers or {})


def datatables_responder(records: List[Dict[str, Any]], total: Optional[int] = None, page_cap: Optional[int] = None):
    """Serves ``records`` as a server-side DataTables endpoint.

    ``page_cap`` makes the server return fewer rows than asked for.
    """
    reported_total = len(records) if total is None else total

    def respond(method, url, headers, body, params):
        start, length = body["start"], body["length"]
        if page_cap is not None:
            length = min(length, page_cap)
        return json_response({
            "draw": body["draw"],
            "recordsTotal": reported_total,
            "recordsFiltered": reported_total,
            "data": records[start:start + length],
        })

    return respond


@pytest.fixture
def make_transport():
    """Builds a FakeTransport from a responder callable."""
    return FakeTransport


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_config():
    """Every test starts from empty configuration and fresh dependencies."""
    from apiwarden import main

    clear_test_config()
    reset_configuration()
    main.reset_dependencies()
    yield
    main.reset_dependencies()
    clear_test_config()
    reset_configuration()
