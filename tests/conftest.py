import json
from typing import Any, List, Optional, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient

from ticket_intake_agent.api import create_app
from ticket_intake_agent.completion import CompletionClient
from ticket_intake_agent.config import Settings
from ticket_intake_agent.router import TicketIntakeService
from ticket_intake_agent.search import SearchClient
from ticket_intake_agent.sheets import SheetsClient
from ticket_intake_agent.tracker import PriceTracker


def make_settings(**overrides: Any) -> Settings:
    values = dict(
        sheets_credentials="{}",
        sheets_id="capture-sheet",
        serper_api_key="serper-key",
        openai_api_key="sk-test",
        search_attempts=1,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeSheets(SheetsClient):
    """Sheets client whose Google calls are replaced by in-memory lists."""

    def __init__(
        self,
        settings: Settings,
        tracker_values: Optional[List[List[Any]]] = None,
        read_error: Optional[Exception] = None,
    ):
        super().__init__(settings)
        self.read_error = read_error
        self.appended: List[List[Any]] = []
        self.reads: List[Tuple[str, str]] = []
        self.tracker_values = tracker_values or []

    def _append_row(self, row):
        self.appended.append(row)

    def _read_tab(self, spreadsheet_id, tab):
        self.reads.append((spreadsheet_id, tab))
        if self.read_error is not None:
            raise self.read_error
        if not self.tracker_values:
            return [], []
        return [str(h) for h in self.tracker_values[0]], self.tracker_values[1:]


def completion_text(text: str) -> dict:
    return {
        "output": [
            {"type": "message", "role": "assistant", "content": [{"type": "output_text", "text": text}]}
        ]
    }


def completion_tool(name: str, arguments: dict) -> dict:
    return {
        "output": [
            {"type": "function_call", "name": name, "call_id": "call_1", "arguments": json.dumps(arguments)}
        ]
    }


def organic(*items: dict) -> dict:
    return {"organic": list(items)}


class UpstreamStub:
    """httpx transport handler standing in for the completion and search APIs."""

    def __init__(self):
        self.completion_responses: List[Tuple[int, Any]] = []
        self.search_responses: List[Tuple[int, Any]] = []
        self.completion_requests: List[httpx.Request] = []
        self.search_requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "google.serper.dev":
            self.search_requests.append(request)
            queue, default = self.search_responses, (200, organic())
        else:
            self.completion_requests.append(request)
            queue, default = self.completion_responses, (200, {"output": []})
        status, body = queue.pop(0) if queue else default
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    def search_queries(self) -> List[str]:
        return [json.loads(req.content)["q"] for req in self.search_requests]


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def upstream() -> UpstreamStub:
    return UpstreamStub()


@pytest.fixture
def transport(upstream) -> httpx.MockTransport:
    return httpx.MockTransport(upstream)


@pytest.fixture
def sheets(settings) -> FakeSheets:
    return FakeSheets(settings)


@pytest.fixture
def service(settings, transport, sheets) -> TicketIntakeService:
    return TicketIntakeService(
        settings=settings,
        completion=CompletionClient(settings, transport=transport),
        search=SearchClient(settings, transport=transport),
        sheets=sheets,
        tracker=PriceTracker(sheets, settings),
    )


@pytest.fixture
def client(service) -> TestClient:
    return TestClient(create_app(service))


@pytest.fixture
def service_with_tracker(settings, transport):
    """Factory for a service whose tracker tab holds ``tracker_values`` or fails with ``read_error``."""

    def build(tracker_values=None, read_error=None):
        sheets = FakeSheets(settings, tracker_values=tracker_values, read_error=read_error)
        service = TicketIntakeService(
            settings=settings,
            completion=CompletionClient(settings, transport=transport),
            search=SearchClient(settings, transport=transport),
            sheets=sheets,
            tracker=PriceTracker(sheets, settings),
        )
        return service, sheets

    return build
