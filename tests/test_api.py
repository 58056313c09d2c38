"""HTTP surface tests."""
import pytest
from fastapi.testclient import TestClient

from threadsmith.api.deps import get_checker_gateway
from threadsmith.core.errors import CheckerUnavailableError
from threadsmith.main import app
from threadsmith.services.checker_gateway import CheckerGateway
from tests.helpers import FakeCheckerClient, make_settings, typo

PREFIX = "/api/v1"


def _span(content, word, candidates=(), segment_id="s1"):
    start = content.index(word)
    return {
        "id": f"spelling-{segment_id}-{start}-{word}",
        "kind": "spelling",
        "segment_id": segment_id,
        "start": start,
        "end": start + len(word),
        "flagged_text": word,
        "candidates": list(candidates),
    }


@pytest.fixture
def fake_client():
    return FakeCheckerClient(lambda text: [typo(text, "teh", ["the", "ten"])] if "teh" in text else [])


@pytest.fixture
def client(fake_client):
    gateway = CheckerGateway(client=fake_client, settings=make_settings())
    app.dependency_overrides[get_checker_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get(f"{PREFIX}/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["checker"]["status"] == "unknown"
    assert response.headers["X-Request-ID"]


def test_liveness(client):
    assert client.get(f"{PREFIX}/health/live").json() == {"status": "alive"}


def test_check_returns_spans_and_groups(client):
    response = client.post(
        f"{PREFIX}/suggestions/check",
        json={"text": "teh cat and teh dog", "segment_id": "s1"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["available"] is True
    assert [s["id"] for s in body["spelling"]] == ["spelling-s1-0-teh"]
    assert body["spelling"][0]["candidates"] == ["the", "ten"]
    assert body["grammar"] == []
    assert body["groups"][0]["flagged_text"] == "teh"


def test_check_respects_custom_dictionary(client):
    response = client.post(
        f"{PREFIX}/suggestions/check",
        json={"text": "teh cat", "custom_dictionary": ["TEH"]},
    )
    assert response.json()["spelling"] == []


def test_check_reports_unavailable_checker(client, fake_client):
    fake_client.responder = lambda text: CheckerUnavailableError("HTTP 502", status_code=502)

    response = client.post(f"{PREFIX}/suggestions/check", json={"text": "teh cat"})

    assert response.status_code == 200
    body = response.json()
    assert body["available"] is False
    assert "HTTP 502" in body["error"]


def test_group(client):
    content = "teh cat, teh dog, wrod"
    spans = [
        {**_span(content, "wrod", ["word"])},
        {**_span(content, "teh", ["the"]), "start": 9, "end": 12, "id": "spelling-s1-9-teh"},
        _span(content, "teh", ["the"]),
    ]

    response = client.post(f"{PREFIX}/suggestions/group", json={"spans": spans})

    groups = response.json()["groups"]
    assert [g["flagged_text"] for g in groups] == ["teh", "wrod"]
    assert groups[0]["member_ids"] == ["spelling-s1-0-teh", "spelling-s1-9-teh"]


def test_apply(client):
    content = "I saw teh cat"
    response = client.post(
        f"{PREFIX}/suggestions/apply",
        json={"content": content, "spans": [_span(content, "teh")], "replacement": "the"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["content"] == "I saw the cat"
    assert body["char_count"] == 13


def test_apply_placeholder_is_rejected(client):
    content = "I saw teh cat"
    response = client.post(
        f"{PREFIX}/suggestions/apply",
        json={"content": content, "spans": [_span(content, "teh")], "replacement": "[Rephrase]"},
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "INVALID_REPLACEMENT"


def test_apply_stale_offsets_conflict(client):
    span = _span("I saw teh cat", "cat")
    response = client.post(
        f"{PREFIX}/suggestions/apply",
        json={"content": "I saw", "spans": [span], "replacement": "dog"},
    )

    assert response.status_code == 409
    error = response.json()["error"]
    assert error["code"] == "STALE_OFFSET"
    assert error["details"]["content_length"] == 5


def test_invalid_span_is_a_validation_error(client):
    span = {**_span("I saw teh cat", "teh"), "end": 6}
    response = client.post(
        f"{PREFIX}/suggestions/apply",
        json={"content": "I saw teh cat", "spans": [span], "replacement": "the"},
    )
    assert response.status_code == 422


def test_fix_all(client):
    content = "The quick brown fox"
    spans = [_span(content, "fox", ["cat"]), _span(content, "quick", ["slow"]), _span(content, "brown")]

    response = client.post(f"{PREFIX}/suggestions/fix-all", json={"content": content, "spans": spans})

    body = response.json()
    assert body["content"] == "The slow brown cat"
    assert sorted(body["applied_ids"]) == ["spelling-s1-16-fox", "spelling-s1-4-quick"]
    assert body["skipped_ids"] == ["spelling-s1-10-brown"]


def test_count_segments(client):
    response = client.post(
        f"{PREFIX}/segments/count",
        json={"segments": ["Hello world", "a" * 281]},
    )

    body = response.json()
    assert [s["char_count"] for s in body["segments"]] == [11, 281]
    assert [s["over_limit"] for s in body["segments"]] == [False, True]
    assert body["segments"][0]["remaining"] == 269
    assert body["total_characters"] == 292
    assert body["limit"] == 280


def test_count_requires_segments(client):
    response = client.post(f"{PREFIX}/segments/count", json={"segments": []})
    assert response.status_code == 422
