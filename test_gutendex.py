import importlib.util
import logging
from pathlib import Path

import httpx
import pytest

import gutendex
from conftest import create_book


def _client(handler) -> httpx.Client:
    return httpx.Client(base_url="https://gutendex.test", transport=httpx.MockTransport(handler))


def _results(*books):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"count": len(books), "results": list(books)})

    return handler


def test_find_gutenberg_id_match():
    seen = {}

    def handler(request):
        seen["search"] = request.url.params["search"]
        return httpx.Response(200, json={"results": [{"id": 345, "title": "Dracula"}]})

    with _client(handler) as client:
        assert gutendex.find_gutenberg_id(client, "Dracula", "Bram Stoker") == "345"
    assert seen["search"] == "Dracula Bram Stoker"


def test_find_gutenberg_id_only_uses_first_result():
    handler = _results({"id": 1, "title": "Dracula's Guest"}, {"id": 345, "title": "Dracula"})
    with _client(handler) as client:
        assert gutendex.find_gutenberg_id(client, "Dracula", "Bram Stoker") == "1"

    handler = _results({"id": 2, "title": "Something Else"}, {"id": 345, "title": "Dracula"})
    with _client(handler) as client:
        assert gutendex.find_gutenberg_id(client, "Dracula", "Bram Stoker") is None


@pytest.mark.parametrize("payload", [{"results": []}, {}])
def test_find_gutenberg_id_no_results(payload):
    with _client(lambda request: httpx.Response(200, json=payload)) as client:
        assert gutendex.find_gutenberg_id(client, "Dracula", "Bram Stoker") is None


def test_find_gutenberg_id_error_status():
    with _client(lambda request: httpx.Response(503)) as client:
        assert gutendex.find_gutenberg_id(client, "Dracula", "Bram Stoker") is None


def test_find_gutenberg_id_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with _client(handler) as client:
        assert gutendex.find_gutenberg_id(client, "Dracula", "Bram Stoker") is None


def test_sync_gutendex_updates_unmatched_books(db_session):
    dracula = create_book(db_session)
    unknown = create_book(db_session, title="Unpublished Draft", author="Nobody")
    linked = create_book(db_session, title="Frankenstein", author="Mary Shelley", gutenberg_id="84")

    searched = []

    def handler(request):
        searched.append(request.url.params["search"])
        if "Dracula" in request.url.params["search"]:
            return httpx.Response(200, json={"results": [{"id": 345, "title": "Dracula"}]})
        return httpx.Response(200, json={"results": []})

    with _client(handler) as client:
        updated = gutendex.sync_gutendex(db_session, client)

    assert updated == 1
    assert len(searched) == 2

    db_session.refresh(dracula)
    db_session.refresh(unknown)
    db_session.refresh(linked)
    assert dracula.gutenberg_id == "345"
    assert dracula.read_url == gutendex.gutenberg_read_url("345")
    assert unknown.gutenberg_id is None
    assert linked.read_url is None


def test_gutenberg_read_url():
    assert gutendex.gutenberg_read_url("84") == "https://www.gutenberg.org/cache/epub/84/pg84-images.html"


def _load_sync_script():
    path = Path(__file__).parent / "scripts" / "gutendex_sync.py"
    module_spec = importlib.util.spec_from_file_location("gutendex_sync", path)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


def test_sync_script_runs_only_through_main(db_session, monkeypatch):
    calls = []

    def handler(request):
        calls.append(request.url.params["search"])
        return httpx.Response(200, json={"results": [{"id": 345, "title": "Dracula"}]})

    create_book(db_session)
    script = _load_sync_script()
    assert calls == []

    monkeypatch.setattr(script, "build_client", lambda: _client(handler))
    monkeypatch.setattr(script.settings, "GUTENDEX_DELAY_SECONDS", 0.0)
    assert script.main() == 0
    assert calls == ["Dracula Bram Stoker"]


def test_sync_script_reports_failure(monkeypatch):
    def failing_sync(db, client, delay=0.0):
        raise RuntimeError("boom")

    script = _load_sync_script()
    monkeypatch.setattr(script, "build_client", lambda: _client(lambda request: httpx.Response(200, json={})))
    monkeypatch.setattr(script, "sync_gutendex", failing_sync)
    assert script.main() == 1


def test_find_gutenberg_id_logs_status(caplog):
    with caplog.at_level(logging.WARNING, logger="gutendex"):
        with _client(lambda request: httpx.Response(503)) as client:
            gutendex.find_gutenberg_id(client, "Dracula", "Bram Stoker")

    assert "Gutendex returned 503 for 'Dracula'" in caplog.text
