"""
Tests for the HTTP and static-root content loaders.

**Testing philosophy**: Never touch the network. The HTTP loader gets a mocked
requests.Session; the static loader reads from tmp_path.
"""

import asyncio
import time
from unittest.mock import Mock

import pytest
import requests

from uploaded_life.config.settings import LoaderSettings
from uploaded_life.errors import TransportDisallowed, TransportError, TransportTimeout
from uploaded_life.transports.base import ContentLoader
from uploaded_life.transports.http_loader import HttpContentLoader
from uploaded_life.transports.static_loader import StaticContentLoader


def make_response(status_code=200, text=""):
    response = Mock()
    response.status_code = status_code
    response.text = text
    return response


# ============================================================================
# HttpContentLoader
# ============================================================================

@pytest.mark.asyncio
async def test_http_loader_returns_body():
    session = Mock()
    session.get.return_value = make_response(200, "id,type\n")
    loader = HttpContentLoader(
        "http://localhost:8000/", timeout_seconds=3, session_factory=lambda: session
    )

    text = await loader.load_text("Scenarios/scenarios.csv")

    assert text == "id,type\n"
    session.get.assert_called_once_with(
        "http://localhost:8000/Scenarios/scenarios.csv", timeout=3
    )


@pytest.mark.asyncio
async def test_http_loader_concurrent_requests_use_separate_sessions():
    sessions = [Mock(), Mock(), Mock()]
    for session in sessions:
        session.get.return_value = make_response(200, "id,type\n")
    factory = Mock(side_effect=sessions)
    loader = HttpContentLoader("http://localhost:8000/", session_factory=factory)

    await asyncio.gather(
        loader.load_text("Scenarios/scenarios.csv"),
        loader.load_text("Scenarios/jobs.csv"),
        loader.load_text("Scenarios/bad_events.csv"),
    )

    assert factory.call_count == 3
    for session in sessions:
        session.get.assert_called_once()
        session.close.assert_called_once()
        session.headers.update.assert_called_once_with(loader.headers)


def test_http_loader_joins_paths_under_base_directory():
    loader = HttpContentLoader("http://example.test/app", session_factory=Mock)

    assert loader.url_for("/Resources/library.json") == "http://example.test/app/Resources/library.json"


@pytest.mark.asyncio
async def test_http_loader_non_2xx_raises_transport_error():
    session = Mock()
    session.get.return_value = make_response(404, "Not Found")
    loader = HttpContentLoader("http://localhost:8000/", session_factory=lambda: session)

    with pytest.raises(TransportError) as exc_info:
        await loader.load_text("Resources/library.json")

    assert not isinstance(exc_info.value, TransportTimeout)
    assert "404" in str(exc_info.value)
    assert exc_info.value.transport == "http"


@pytest.mark.asyncio
async def test_http_loader_requests_timeout_raises_transport_timeout():
    session = Mock()
    session.get.side_effect = requests.Timeout("read timed out")
    loader = HttpContentLoader("http://localhost:8000/", session_factory=lambda: session)

    with pytest.raises(TransportTimeout):
        await loader.load_text("Resources/library.json")


@pytest.mark.asyncio
async def test_http_loader_connection_error_raises_transport_error():
    session = Mock()
    session.get.side_effect = requests.ConnectionError("connection refused")
    loader = HttpContentLoader("http://localhost:8000/", session_factory=lambda: session)

    with pytest.raises(TransportError) as exc_info:
        await loader.load_text("Resources/library.json")
    assert "connection refused" in str(exc_info.value)


@pytest.mark.asyncio
async def test_http_loader_enforces_its_own_timeout():
    """A request that hangs is abandoned after timeout_seconds."""
    session = Mock()
    session.get.side_effect = lambda *args, **kwargs: time.sleep(0.5)
    loader = HttpContentLoader(
        "http://localhost:8000/", timeout_seconds=0.05, session_factory=lambda: session
    )

    with pytest.raises(TransportTimeout):
        await loader.load_text("Resources/library.json")


@pytest.mark.asyncio
@pytest.mark.parametrize("base_url", ["", "file:///srv/site/"])
async def test_http_loader_disallowed_without_http_base_url(base_url):
    session = Mock()
    loader = HttpContentLoader(base_url, session_factory=lambda: session)

    assert not loader.is_available("Resources/library.json")
    with pytest.raises(TransportDisallowed):
        await loader.load_text("Resources/library.json")
    session.get.assert_not_called()


def test_http_loader_from_settings():
    settings = LoaderSettings(base_url="https://cdn.example.test/site/", fetch_timeout_seconds=4)

    loader = HttpContentLoader.from_settings(settings, session_factory=Mock)

    assert loader.base_url == "https://cdn.example.test/site/"
    assert loader.timeout_seconds == 4
    assert isinstance(loader, ContentLoader)


# ============================================================================
# StaticContentLoader
# ============================================================================

@pytest.mark.asyncio
async def test_static_loader_reads_file_and_strips_bom(tmp_path):
    (tmp_path / "Scenarios").mkdir()
    (tmp_path / "Scenarios" / "jobs.csv").write_bytes(
        "\ufeffgroup,label,effect\n".encode("utf-8")
    )
    loader = StaticContentLoader(tmp_path)

    text = await loader.load_text("Scenarios/jobs.csv")

    assert text == "group,label,effect\n"


@pytest.mark.asyncio
async def test_static_loader_accepts_leading_slash(static_root):
    loader = StaticContentLoader(static_root)

    text = await loader.load_text("/Resources/library.json")

    assert '"scenarios"' in text


@pytest.mark.asyncio
async def test_static_loader_missing_file_raises_transport_error(tmp_path):
    loader = StaticContentLoader(tmp_path)

    with pytest.raises(TransportError) as exc_info:
        await loader.load_text("Resources/library.json")
    assert "not found" in str(exc_info.value)
    assert exc_info.value.transport == "static"


@pytest.mark.asyncio
async def test_static_loader_refuses_paths_outside_root(tmp_path):
    root = tmp_path / "public"
    root.mkdir()
    (tmp_path / "secret.txt").write_text("nope", encoding="utf-8")
    loader = StaticContentLoader(root)

    assert not loader.is_available("../secret.txt")
    with pytest.raises(TransportDisallowed):
        await loader.load_text("../secret.txt")


def test_static_loader_from_settings(tmp_path):
    settings = LoaderSettings(static_root=tmp_path, static_timeout_seconds=2)

    loader = StaticContentLoader.from_settings(settings)

    assert loader.static_root == tmp_path
    assert loader.timeout_seconds == 2
    assert isinstance(loader, ContentLoader)
