import asyncio
import uuid

import pytest

from app.core.db import SessionLocal
from app.core.errors import NotFound
from app.db.repositories.content_repository import PageRepository
from app.domains.identity.entities import GlobalRole
from app.domains.revisions.entities import Revision
from app.domains.revisions.services import RevisionStore
from tests.helpers import create_user, principal_of, auth_headers, create_team, add_member, create_book, create_page


async def _edit(client, user, slug, content):
    response = await client.put(
        f"/pages/{slug}",
        json={"content": content, "html": f"<p>{content}</p>"},
        headers=auth_headers(user)
    )
    assert response.status_code == 200, response.text
    return response.json()


async def _revisions(client, user, slug):
    response = await client.get(f"/pages/{slug}/revisions", headers=auth_headers(user))
    assert response.status_code == 200, response.text
    return response.json()


async def test_page_creation_writes_no_revision(client):
    editor = await create_user()
    page = await create_page(client, editor, content="v0")

    listing = await _revisions(client, editor, page["slug"])
    assert listing == {"revisions": [], "total": 0}


async def test_each_edit_snapshots_previous_content(client):
    editor = await create_user(name="Eve")
    page = await create_page(client, editor, content="v0", html="<p>v0</p>")

    for n in range(1, 4):
        updated = await _edit(client, editor, page["slug"], f"v{n}")
        assert updated["content"] == f"v{n}"

    listing = await _revisions(client, editor, page["slug"])
    assert listing["total"] == 3
    assert [r["revision_number"] for r in listing["revisions"]] == [3, 2, 1]
    assert [r["content"] for r in listing["revisions"]] == ["v2", "v1", "v0"]
    assert listing["revisions"][-1]["html"] == "<p>v0</p>"
    assert listing["revisions"][0]["author"] == {"id": str(editor.id), "name": "Eve", "image": None}


async def test_metadata_only_update_writes_no_revision(client):
    editor = await create_user()
    page = await create_page(client, editor, content="v0")

    response = await client.put(
        f"/pages/{page['slug']}", json={"name": "Renamed", "draft": True}, headers=auth_headers(editor)
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Renamed"
    assert response.json()["draft"] is True
    assert (await _revisions(client, editor, page["slug"]))["total"] == 0


async def test_restore_is_a_new_edit(client):
    editor = await create_user()
    page = await create_page(client, editor, content="v0")
    await _edit(client, editor, page["slug"], "v1")
    await _edit(client, editor, page["slug"], "v2")
    first = (await _revisions(client, editor, page["slug"]))["revisions"][-1]
    assert first["content"] == "v0"

    response = await client.post(
        f"/pages/{page['slug']}/revisions/{first['id']}/restore", headers=auth_headers(editor)
    )
    assert response.status_code == 200
    assert response.json() == {"success": True}

    current = await client.get(f"/pages/{page['slug']}", headers=auth_headers(editor))
    assert current.json()["content"] == "v0"

    listing = await _revisions(client, editor, page["slug"])
    assert listing["total"] == 3
    newest = listing["revisions"][0]
    assert newest["revision_number"] == 3
    assert newest["content"] == "v2"


async def test_restore_rejects_revision_of_other_page(client):
    editor = await create_user()
    page = await create_page(client, editor, name="One", content="a")
    other = await create_page(client, editor, name="Two", content="b")
    await _edit(client, editor, other["slug"], "b1")
    foreign = (await _revisions(client, editor, other["slug"]))["revisions"][0]

    response = await client.post(
        f"/pages/{page['slug']}/revisions/{foreign['id']}/restore", headers=auth_headers(editor)
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Revision not found"

    response = await client.post(
        f"/pages/{page['slug']}/revisions/{uuid.uuid4()}/restore", headers=auth_headers(editor)
    )
    assert response.status_code == 404


async def test_team_viewer_reads_history_but_cannot_restore(client):
    owner = await create_user()
    viewer = await create_user(role=GlobalRole.VIEWER)
    outsider = await create_user()
    team = await create_team(client, owner)
    await add_member(client, team, owner, viewer)
    book = await create_book(client, owner, team_id=team["id"])
    page = await create_page(client, owner, book_id=book["id"], content="v0")
    await _edit(client, owner, page["slug"], "v1")

    listing = await _revisions(client, viewer, page["slug"])
    revision_id = listing["revisions"][0]["id"]

    response = await client.post(
        f"/pages/{page['slug']}/revisions/{revision_id}/restore", headers=auth_headers(viewer)
    )
    assert response.status_code == 403

    response = await client.put(f"/pages/{page['slug']}", json={"content": "x"}, headers=auth_headers(viewer))
    assert response.status_code == 403

    response = await client.get(f"/pages/{page['slug']}/revisions", headers=auth_headers(outsider))
    assert response.status_code == 403


async def test_concurrent_edits_get_distinct_numbers(client):
    editor = await create_user()
    page = await create_page(client, editor, content="v0")
    page_id = uuid.UUID(page["id"])
    principal = await principal_of(editor)

    async def edit(content):
        async with SessionLocal() as session:
            return await RevisionStore(session).record_edit(page_id, content, None, principal)

    await asyncio.gather(*(edit(f"concurrent-{i}") for i in range(4)))

    async with SessionLocal() as session:
        revisions = await RevisionStore(session).list_revisions(page_id)
        current = await PageRepository(session).get_by_id(page_id)
    assert sorted(r.revision_number for r in revisions) == [1, 2, 3, 4]
    # Ни одна правка не потеряна: каждая видела результат предыдущей
    contents = {r.content for r in revisions} | {current.content}
    assert contents == {"v0"} | {f"concurrent-{i}" for i in range(4)}


async def test_restore_unknown_page_revision_raises(session):
    editor = await create_user()
    principal = await principal_of(editor)

    with pytest.raises(NotFound):
        await RevisionStore(session).restore(uuid.uuid4(), uuid.uuid4(), principal)


def test_snapshot_numbers_start_at_one():
    with pytest.raises(ValueError):
        Revision.snapshot(uuid.uuid4(), "text", None, 0, None)

    snapshot = Revision.snapshot(uuid.uuid4(), None, None, 1, None)
    assert snapshot.content == ""


async def test_restore_with_malformed_revision_id_is_not_found(client):
    editor = await create_user()
    page = await create_page(client, editor, content="a")

    response = await client.post(
        f"/pages/{page['slug']}/revisions/not-a-uuid/restore", headers=auth_headers(editor)
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Revision not found"

    response = await client.post(f"/pages/{page['slug']}/revisions/not-a-uuid/restore")
    assert response.status_code == 401
