import uuid

from app.domains.identity.entities import GlobalRole
from tests.helpers import create_user, auth_headers, create_book, create_chapter, create_page


async def _read(client, book):
    response = await client.get(f"/books/{book['slug']}/read")
    assert response.status_code == 200, response.text
    return response.json()


async def test_new_siblings_are_appended(client):
    editor = await create_user()
    book = await create_book(client, editor)
    chapters = [await create_chapter(client, editor, book["id"], name=f"C{i}") for i in range(3)]
    pages = [await create_page(client, editor, name=f"P{i}", book_id=book["id"]) for i in range(2)]

    assert [c["sort_order"] for c in chapters] == [0, 1, 2]
    assert [p["sort_order"] for p in pages] == [0, 1]


async def test_reorder_chapters(client):
    editor = await create_user()
    book = await create_book(client, editor)
    chapters = [await create_chapter(client, editor, book["id"], name=f"C{i}") for i in range(3)]

    ordered = [chapters[2]["id"], chapters[0]["id"], chapters[1]["id"]]
    response = await client.post(
        "/reorder", json={"type": "chapters", "items": ordered}, headers=auth_headers(editor)
    )
    assert response.status_code == 200
    assert response.json() == {"success": True}

    tree = await _read(client, book)
    assert [c["name"] for c in tree["chapters"]] == ["C2", "C0", "C1"]


async def test_reorder_pages_ignores_unknown_ids(client):
    editor = await create_user()
    book = await create_book(client, editor)
    chapter = await create_chapter(client, editor, book["id"])
    pages = [await create_page(client, editor, name=f"P{i}", chapter_id=chapter["id"]) for i in range(3)]

    ordered = [pages[1]["id"], str(uuid.uuid4()), pages[0]["id"], pages[2]["id"]]
    response = await client.post("/reorder", json={"type": "pages", "items": ordered}, headers=auth_headers(editor))
    assert response.status_code == 200

    tree = await _read(client, book)
    assert [p["name"] for p in tree["chapters"][0]["pages"]] == ["P1", "P0", "P2"]


async def test_reorder_requires_manage_on_every_item(client):
    owner = await create_user()
    stranger = await create_user()
    book = await create_book(client, owner)
    chapters = [await create_chapter(client, owner, book["id"], name=f"C{i}") for i in range(2)]

    items = [chapters[1]["id"], chapters[0]["id"]]
    response = await client.post("/reorder", json={"type": "chapters", "items": items}, headers=auth_headers(stranger))
    assert response.status_code == 403

    tree = await _read(client, book)
    assert [c["name"] for c in tree["chapters"]] == ["C0", "C1"]


async def test_reorder_contract_errors(client):
    editor = await create_user()

    response = await client.post("/reorder", json={"type": "chapters", "items": []})
    assert response.status_code == 401

    response = await client.post("/reorder", json={"type": "books", "items": []}, headers=auth_headers(editor))
    assert response.status_code == 400

    response = await client.post("/reorder", json={"type": "pages", "items": ["nope"]}, headers=auth_headers(editor))
    assert response.status_code == 400


async def test_move_page_resequences_both_sides(client):
    editor = await create_user()
    book = await create_book(client, editor)
    source = await create_chapter(client, editor, book["id"], name="Source")
    target = await create_chapter(client, editor, book["id"], name="Target")
    pages = [await create_page(client, editor, name=f"P{i}", chapter_id=source["id"]) for i in range(3)]
    await create_page(client, editor, name="T0", chapter_id=target["id"])

    response = await client.post(
        f"/pages/{pages[0]['slug']}/move", json={"chapter_id": target["id"]}, headers=auth_headers(editor)
    )
    assert response.status_code == 200
    moved = response.json()
    assert moved["chapter_id"] == target["id"]
    assert moved["book_id"] == book["id"]
    assert moved["sort_order"] == 1

    tree = await _read(client, book)
    source_pages, target_pages = tree["chapters"][0]["pages"], tree["chapters"][1]["pages"]
    assert [p["name"] for p in source_pages] == ["P1", "P2"]
    assert [p["name"] for p in target_pages] == ["T0", "P0"]

    for slug, expected in ((pages[1]["slug"], 0), (pages[2]["slug"], 1)):
        page = await client.get(f"/pages/{slug}", headers=auth_headers(editor))
        assert page.json()["sort_order"] == expected


async def test_move_page_to_book_root(client):
    editor = await create_user()
    book = await create_book(client, editor)
    chapter = await create_chapter(client, editor, book["id"])
    page = await create_page(client, editor, chapter_id=chapter["id"])

    response = await client.post(
        f"/pages/{page['slug']}/move", json={"book_id": book["id"]}, headers=auth_headers(editor)
    )
    assert response.status_code == 200
    assert response.json()["chapter_id"] is None

    tree = await _read(client, book)
    assert tree["chapters"][0]["pages"] == []
    assert [p["slug"] for p in tree["direct_pages"]] == [page["slug"]]


async def test_move_page_requires_target(client):
    editor = await create_user()
    page = await create_page(client, editor)

    response = await client.post(f"/pages/{page['slug']}/move", json={}, headers=auth_headers(editor))
    assert response.status_code == 400


async def test_delete_page_resequences_siblings(client):
    admin = await create_user(role=GlobalRole.ADMIN)
    book = await create_book(client, admin)
    pages = [await create_page(client, admin, name=f"P{i}", book_id=book["id"]) for i in range(3)]

    response = await client.delete(f"/pages/{pages[0]['slug']}", headers=auth_headers(admin))
    assert response.status_code == 204

    remaining = [await client.get(f"/pages/{p['slug']}", headers=auth_headers(admin)) for p in pages[1:]]
    assert [r.json()["sort_order"] for r in remaining] == [0, 1]
    assert (await client.get(f"/pages/{pages[0]['slug']}", headers=auth_headers(admin))).status_code == 404


async def test_delete_chapter_detaches_pages_to_book(client):
    admin = await create_user(role=GlobalRole.ADMIN)
    book = await create_book(client, admin)
    first = await create_chapter(client, admin, book["id"], name="First")
    second = await create_chapter(client, admin, book["id"], name="Second")
    await create_page(client, admin, name="Direct", book_id=book["id"])
    for i in range(2):
        await create_page(client, admin, name=f"In{i}", chapter_id=first["id"])

    response = await client.delete(f"/chapters/{first['slug']}", headers=auth_headers(admin))
    assert response.status_code == 204

    tree = await _read(client, book)
    assert [c["name"] for c in tree["chapters"]] == ["Second"]
    assert [p["name"] for p in tree["direct_pages"]] == ["Direct", "In0", "In1"]

    chapter = await client.get(f"/chapters/{second['slug']}", headers=auth_headers(admin))
    assert chapter.json()["sort_order"] == 0


async def test_unparented_pages_are_ordered_per_author(client):
    first = await create_user()
    second = await create_user()
    mine = [await create_page(client, first, name=f"Mine{i}") for i in range(2)]
    theirs = await create_page(client, second, name="Theirs")

    assert [p["sort_order"] for p in mine] == [0, 1]
    assert theirs["sort_order"] == 0


async def test_moving_unparented_page_leaves_other_authors_untouched(client):
    admin = await create_user(role=GlobalRole.ADMIN)
    author = await create_user()
    book = await create_book(client, author)
    mine = [await create_page(client, author, name=f"Mine{i}") for i in range(2)]
    created = [await create_page(client, admin, name=f"Foreign{i}") for i in range(2)]
    foreign = [
        (await client.get(f"/pages/{p['slug']}", headers=auth_headers(admin))).json() for p in created
    ]

    response = await client.post(
        f"/pages/{mine[0]['slug']}/move", json={"book_id": book["id"]}, headers=auth_headers(author)
    )
    assert response.status_code == 200

    stay = await client.get(f"/pages/{mine[1]['slug']}", headers=auth_headers(author))
    assert stay.json()["sort_order"] == 0

    for before in foreign:
        after = (await client.get(f"/pages/{before['slug']}", headers=auth_headers(admin))).json()
        assert after["sort_order"] == before["sort_order"]
        assert after["updated_at"] == before["updated_at"]

    response = await client.delete(f"/pages/{foreign[0]['slug']}", headers=auth_headers(admin))
    assert response.status_code == 204
    untouched = await client.get(f"/pages/{mine[1]['slug']}", headers=auth_headers(author))
    assert untouched.json()["updated_at"] == stay.json()["updated_at"]
