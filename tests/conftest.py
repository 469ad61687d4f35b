import httpx
import pytest
from fastapi.testclient import TestClient

from app.config import Settings, get_settings
from app.dependencies import get_forms_client
from app.main import app
from app.services.forms_client import FormsClient

BASE_URL = "https://forms.example.com/api/forms"


class Upstream:
    """
    Scripted forms API for httpx.MockTransport.

    Register responses per absolute URL; anything unregistered is a 404.
    Every request is recorded in `calls`.
    """

    def __init__(self):
        self.routes: dict[str, tuple[int, dict]] = {}
        self.calls: list[httpx.Request] = []

    def add(self, url: str, status: int = 200, json=None, text: str | None = None):
        if text is not None:
            self.routes[url] = (status, {"text": text})
        else:
            self.routes[url] = (status, {"json": json})

    def add_entries(self, form_id: str, entries: list[dict]):
        for entry_id, entry in enumerate(entries, start=1):
            self.add(f"{BASE_URL}/{form_id}/entries/{entry_id}", json=entry)

    @property
    def urls(self) -> list[str]:
        return [str(request.url) for request in self.calls]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        status, content = self.routes.get(str(request.url), (404, {"text": "Not Found"}))
        return httpx.Response(status, **content)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        forms_api_key="test-key",
        forms_base_url=BASE_URL,
        data_root=str(tmp_path),
        forms_max_entries=50,
    )


@pytest.fixture
def base_url(settings) -> str:
    """Root URL of the scripted forms API."""
    return settings.forms_base_url


@pytest.fixture
def upstream() -> Upstream:
    return Upstream()


@pytest.fixture
def forms_client(settings, upstream):
    """FormsClient talking to the scripted upstream."""
    client = FormsClient(settings, transport=httpx.MockTransport(upstream))
    yield client
    client.close()


@pytest.fixture
def client(settings, upstream):
    """TestClient with settings and the forms API client overridden."""

    def override_forms_client():
        forms_client = FormsClient(settings, transport=httpx.MockTransport(upstream))
        try:
            yield forms_client
        finally:
            forms_client.close()

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_forms_client] = override_forms_client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
