"""Tests for sequential batch proposal generation."""

from uuid import UUID

import pytest

from app.db.models import Proposal, RFPUpload
from app.services.ai_provider import AIProviderError
from conftest import RFP_TEXT


def _files(*names):
    return [("files", (name, RFP_TEXT.encode(), "text/plain")) for name in names]


@pytest.mark.asyncio
async def test_failed_item_does_not_stop_the_batch(authed_client, db, fake_ai):
    """The second generation fails; the first and third still get proposals."""
    fake_ai.fail_generation_calls = {2}

    response = await authed_client.post(
        "/api/proposals/batch", files=_files("a.txt", "b.txt", "c.txt")
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success_count"] == 2
    assert body["error_count"] == 1
    assert body["skipped_count"] == 0
    assert [r["status"] for r in body["results"]] == ["success", "error", "success"]

    failed = body["results"][1]
    assert failed["file_name"] == "b.txt"
    assert failed["proposal_id"] is None
    assert "Gemini returned HTTP 503" in failed["error"]

    # The failed item's RFP was committed before generation started
    assert db.query(RFPUpload).count() == 3
    proposals = db.query(Proposal).all()
    assert len(proposals) == 2
    assert {str(p.id) for p in proposals} == {
        body["results"][0]["proposal_id"],
        body["results"][2]["proposal_id"],
    }


@pytest.mark.asyncio
async def test_items_processed_in_order(authed_client, fake_ai):
    await authed_client.post("/api/proposals/batch", files=_files("a.txt", "b.txt"))

    kinds = [
        "parse" if "RFP Document:" in prompt else "generate"
        for prompt in fake_ai.prompts
    ]
    assert kinds == ["parse", "generate", "parse", "generate"]


@pytest.mark.asyncio
async def test_duplicate_file_name_skipped(authed_client, db):
    first = await authed_client.post("/api/proposals/batch", files=_files("a.txt"))
    first_rfp = first.json()["results"][0]["rfp_id"]

    second = await authed_client.post(
        "/api/proposals/batch", files=_files("a.txt", "b.txt"), data={"on_duplicate": "skip"}
    )

    body = second.json()
    assert body["skipped_count"] == 1
    assert body["success_count"] == 1
    assert body["results"][0] == {
        "file_name": "a.txt",
        "status": "skipped",
        "rfp_id": first_rfp,
        "proposal_id": None,
        "error": None,
    }
    assert db.query(RFPUpload).count() == 2


@pytest.mark.asyncio
async def test_duplicate_file_name_overwritten(authed_client, db):
    first = await authed_client.post("/api/proposals/batch", files=_files("a.txt"))
    first_result = first.json()["results"][0]

    second = await authed_client.post(
        "/api/proposals/batch", files=_files("a.txt"), data={"on_duplicate": "overwrite"}
    )

    result = second.json()["results"][0]
    assert result["status"] == "success"
    assert result["rfp_id"] != first_result["rfp_id"]
    assert db.query(RFPUpload).count() == 1
    # The earlier proposal survives, unlinked from the replaced RFP
    old = db.get(Proposal, UUID(first_result["proposal_id"]))
    db.refresh(old)
    assert old.rfp_id is None


@pytest.mark.asyncio
async def test_batch_reports_unreadable_files(authed_client):
    files = _files("good.txt") + [("files", ("empty.txt", b"", "text/plain"))]

    response = await authed_client.post("/api/proposals/batch", files=files)

    body = response.json()
    assert body["success_count"] == 1
    assert body["error_count"] == 1
    assert body["results"][1] == {
        "file_name": "empty.txt",
        "status": "error",
        "rfp_id": None,
        "proposal_id": None,
        "error": "empty.txt is empty",
    }


@pytest.mark.asyncio
async def test_batch_limits_and_options(authed_client):
    too_many = await authed_client.post(
        "/api/proposals/batch", files=_files(*[f"{i}.txt" for i in range(11)])
    )
    bad_policy = await authed_client.post(
        "/api/proposals/batch", files=_files("a.txt"), data={"on_duplicate": "merge"}
    )

    assert too_many.status_code == 400
    assert too_many.json()["message"] == "Too many files. Maximum is 10 files per batch"
    assert bad_policy.status_code == 400


@pytest.mark.asyncio
async def test_failed_overwrite_keeps_original_rfp(authed_client, db, fake_ai):
    first = await authed_client.post("/api/proposals/batch", files=_files("a.txt"))
    original_id = first.json()["results"][0]["rfp_id"]
    fake_ai.queue(AIProviderError("parse down"))

    second = await authed_client.post(
        "/api/proposals/batch", files=_files("a.txt"), data={"on_duplicate": "overwrite"}
    )

    assert second.json()["error_count"] == 1
    assert db.query(RFPUpload).count() == 1
    assert (await authed_client.get(f"/api/rfp/{original_id}")).status_code == 200
    download = await authed_client.get(f"/api/rfp/{original_id}/download")
    assert download.status_code == 200
    assert download.content == RFP_TEXT.encode()


@pytest.mark.asyncio
async def test_successful_overwrite_removes_replaced_file(authed_client, storage_dir):
    await authed_client.post("/api/proposals/batch", files=_files("a.txt"))
    await authed_client.post(
        "/api/proposals/batch", files=_files("a.txt"), data={"on_duplicate": "overwrite"}
    )

    stored = [p for p in storage_dir.rglob("*") if p.is_file()]
    assert len(stored) == 1
