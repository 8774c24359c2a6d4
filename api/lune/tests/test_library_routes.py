"""Library route tests: the reconciling POST and the read views."""

from __future__ import annotations

import pytest

from lune.tests.utils import register_and_login


@pytest.mark.asyncio
async def test_library_post_requires_identity_but_answers_ok(client):
    res = await client.post("/api/me/library", json={"mediaId": "movie-1", "mediaType": "movie", "status": "watching"})

    assert res.status_code == 200
    assert res.json() == {"success": False, "error": "You must be logged in."}


@pytest.mark.asyncio
async def test_library_post_rejects_missing_media_type(client):
    await register_and_login(client)

    res = await client.post("/api/me/library", json={"mediaId": "movie-1", "status": "watching"})

    assert res.status_code == 422


@pytest.mark.asyncio
async def test_library_round_trip(client):
    await register_and_login(client)

    save = await client.post(
        "/api/me/library",
        json={
            "mediaId": "book-OL81631W",
            "mediaType": "book",
            "title": "Dune",
            "authorOrDirector": "Frank Herbert",
            "genres": ["Science Fiction"],
            "totalPages": 412,
            "status": "watching",
            "currentPage": 100,
        },
    )
    assert save.status_code == 200
    assert save.json() == {"success": True, "error": None}

    listing = await client.get("/api/me/library", params={"status": "watching"})
    assert listing.status_code == 200
    entries = listing.json()
    assert len(entries) == 1
    assert entries[0]["media_item"]["title"] == "Dune"
    assert entries[0]["current_page"] == 100

    entry = await client.get("/api/me/library/book-OL81631W")
    assert entry.status_code == 200
    assert entry.json()["status"] == "watching"

    assert (await client.get("/api/me/library", params={"status": "completed"})).json() == []
    assert (await client.get("/api/me/library/book-missing")).status_code == 404


@pytest.mark.asyncio
async def test_favourites_filter_and_snake_case_payload(client):
    await register_and_login(client)
    await client.post("/api/me/library", json={"media_id": "movie-5", "media_type": "movie", "is_favourite": True})
    await client.post("/api/me/library", json={"media_id": "movie-6", "media_type": "movie", "status": "dropped"})

    res = await client.get("/api/me/library", params={"favourites": "true"})

    assert res.status_code == 200
    assert [entry["media_id"] for entry in res.json()] == ["movie-5"]


@pytest.mark.asyncio
async def test_library_reads_require_login(client):
    assert (await client.get("/api/me/library")).status_code == 401


@pytest.mark.asyncio
async def test_library_post_rejects_off_step_rating(client):
    await register_and_login(client)

    res = await client.post(
        "/api/me/library", json={"mediaId": "movie-1", "mediaType": "movie", "status": "completed", "rating": 3.7}
    )

    assert res.status_code == 422
