from app.domains.identity.entities import GlobalRole
from tests.helpers import (
    PASSWORD, create_user, auth_headers, create_team, add_member,
    create_shelf, create_book, create_chapter, create_page
)


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "ok"}


async def test_register_login_me(client):
    response = await client.post(
        "/auth/register", json={"email": "new@example.com", "name": "New", "password": "passw0rd"}
    )
    assert response.status_code == 201
    assert response.json()["role"] == "viewer"

    response = await client.post("/auth/register", json={"email": "new@example.com", "password": "passw0rd"})
    assert response.status_code == 400

    response = await client.post("/auth/login", json={"email": "new@example.com", "password": "wrong-pass1"})
    assert response.status_code == 401

    response = await client.post("/auth/login", json={"email": "new@example.com", "password": "passw0rd"})
    assert response.status_code == 200
    token = response.json()["access_token"]

    response = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["email"] == "new@example.com"


async def test_login_with_helper_password(client):
    user = await create_user(email="helper@example.com")
    response = await client.post("/auth/login", json={"email": "helper@example.com", "password": PASSWORD})
    assert response.status_code == 200
    assert user.email == "helper@example.com"


async def test_requires_authentication(client):
    assert (await client.get("/books")).status_code == 401
    assert (await client.post("/shelves", json={"name": "S"})).status_code == 401
    response = await client.get("/pages/anything", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


async def test_create_and_get_hierarchy(client):
    editor = await create_user()
    shelf = await create_shelf(client, editor, name="Engineering")
    book = await create_book(client, editor, name="Runbook", shelf_id=shelf["id"])
    chapter = await create_chapter(client, editor, book["id"], name="Deploys")
    page = await create_page(client, editor, name="Rollback", chapter_id=chapter["id"], content="steps")

    assert shelf["slug"].startswith("engineering-")
    assert book["shelf_id"] == shelf["id"]
    assert chapter["book_id"] == book["id"]
    assert page["book_id"] == book["id"]
    assert page["created_by"] == str(editor.id)
    assert page["team_id"] is None

    for path in (
        f"/shelves/{shelf['slug']}",
        f"/books/{book['slug']}",
        f"/chapters/{chapter['slug']}",
        f"/pages/{page['slug']}",
    ):
        response = await client.get(path, headers=auth_headers(editor))
        assert response.status_code == 200, path


async def test_unknown_slug_is_not_found(client):
    editor = await create_user()
    for path in ("/shelves/nope", "/books/nope", "/chapters/nope", "/pages/nope"):
        response = await client.get(path, headers=auth_headers(editor))
        assert response.status_code == 404
    response = await client.get("/books/nope", headers=auth_headers(editor))
    assert response.json() == {"detail": "Book not found"}


async def test_explicit_slug_must_be_unique_per_table(client):
    editor = await create_user()
    book = await create_book(client, editor, slug="Team Handbook")
    assert book["slug"] == "team-handbook"

    response = await client.post(
        "/books", json={"name": "Other", "slug": "team-handbook"}, headers=auth_headers(editor)
    )
    assert response.status_code == 400
    assert response.json() == {"detail": "Slug already in use"}

    # Другая таблица - другое пространство slug
    shelf = await create_shelf(client, editor, slug="team-handbook")
    assert shelf["slug"] == "team-handbook"


async def test_validation_errors_are_bad_requests(client):
    editor = await create_user()
    response = await client.post("/books", json={"name": "   "}, headers=auth_headers(editor))
    assert response.status_code == 400
    assert response.json() == {"detail": "Invalid request"}

    response = await client.post("/chapters", json={"name": "No book"}, headers=auth_headers(editor))
    assert response.status_code == 400


async def test_viewer_cannot_create(client):
    viewer = await create_user(role=GlobalRole.VIEWER)
    response = await client.post("/books", json={"name": "Nope"}, headers=auth_headers(viewer))
    assert response.status_code == 403


async def test_personal_content_is_private(client):
    owner = await create_user()
    stranger = await create_user()
    admin = await create_user(role=GlobalRole.ADMIN)
    book = await create_book(client, owner)
    page = await create_page(client, owner, book_id=book["id"])

    assert (await client.get(f"/books/{book['slug']}", headers=auth_headers(stranger))).status_code == 403
    assert (await client.get(f"/pages/{page['slug']}", headers=auth_headers(stranger))).status_code == 403
    assert (await client.get(f"/pages/{page['slug']}", headers=auth_headers(admin))).status_code == 200

    response = await client.post(
        "/chapters", json={"name": "Intrusion", "book_id": book["id"]}, headers=auth_headers(stranger)
    )
    assert response.status_code == 403


async def test_team_content_visible_to_members(client):
    owner = await create_user()
    member = await create_user()
    outsider = await create_user()
    team = await create_team(client, owner)
    await add_member(client, team, owner, member)

    book = await create_book(client, owner, team_id=team["id"])
    await create_book(client, outsider, name="Private")

    assert (await client.get(f"/books/{book['slug']}", headers=auth_headers(member))).status_code == 200
    assert (await client.get(f"/books/{book['slug']}", headers=auth_headers(outsider))).status_code == 403

    listed = await client.get("/books", headers=auth_headers(member))
    assert [b["slug"] for b in listed.json()] == [book["slug"]]

    # Член команды может писать в командную книгу
    chapter = await create_chapter(client, member, book["id"], name="From member")
    assert chapter["book_id"] == book["id"]


async def test_team_book_readable_after_joining_team(client):
    owner = await create_user()
    newcomer = await create_user(role=GlobalRole.VIEWER)
    team = await create_team(client, owner)
    book = await create_book(client, owner, team_id=team["id"])

    response = await client.get(f"/books/{book['slug']}", headers=auth_headers(newcomer))
    assert response.status_code == 403

    await add_member(client, team, owner, newcomer)

    response = await client.get(f"/books/{book['slug']}", headers=auth_headers(newcomer))
    assert response.status_code == 200
    assert response.json()["id"] == book["id"]


async def test_create_in_foreign_team_is_denied(client):
    owner = await create_user()
    outsider = await create_user()
    team = await create_team(client, owner)

    response = await client.post(
        "/shelves", json={"name": "Hijack", "team_id": team["id"]}, headers=auth_headers(outsider)
    )
    assert response.status_code == 403


async def test_listing_for_admin_includes_everything(client):
    admin = await create_user(role=GlobalRole.ADMIN)
    first = await create_user()
    second = await create_user()
    await create_shelf(client, first, name="One")
    await create_shelf(client, second, name="Two")

    response = await client.get("/shelves", headers=auth_headers(admin))
    assert sorted(s["name"] for s in response.json()) == ["One", "Two"]

    response = await client.get("/shelves", headers=auth_headers(first))
    assert [s["name"] for s in response.json()] == ["One"]


async def test_update_metadata(client):
    editor = await create_user()
    shelf = await create_shelf(client, editor)
    book = await create_book(client, editor, shelf_id=shelf["id"])

    response = await client.patch(
        f"/books/{book['slug']}", json={"name": "Renamed", "description": "Docs"}, headers=auth_headers(editor)
    )
    assert response.status_code == 200
    updated = response.json()
    assert updated["name"] == "Renamed"
    assert updated["shelf_id"] == shelf["id"]

    response = await client.patch(f"/books/{book['slug']}", json={"shelf_id": None}, headers=auth_headers(editor))
    assert response.json()["shelf_id"] is None

    response = await client.patch(
        f"/shelves/{shelf['slug']}", json={"description": "Shelf notes"}, headers=auth_headers(editor)
    )
    assert response.json()["description"] == "Shelf notes"


async def test_delete_requires_admin_role(client):
    editor = await create_user()
    admin = await create_user(role=GlobalRole.ADMIN)
    shelf = await create_shelf(client, editor)
    book = await create_book(client, editor, shelf_id=shelf["id"])
    page = await create_page(client, editor, book_id=book["id"])

    assert (await client.delete(f"/books/{book['slug']}", headers=auth_headers(editor))).status_code == 403

    assert (await client.delete(f"/shelves/{shelf['slug']}", headers=auth_headers(admin))).status_code == 204
    detached = await client.get(f"/books/{book['slug']}", headers=auth_headers(editor))
    assert detached.json()["shelf_id"] is None

    assert (await client.delete(f"/books/{book['slug']}", headers=auth_headers(admin))).status_code == 204
    assert (await client.get(f"/pages/{page['slug']}", headers=auth_headers(admin))).status_code == 404


async def test_reading_views_need_no_authentication(client):
    owner = await create_user()
    shelf = await create_shelf(client, owner, name="Public")
    book = await create_book(client, owner, name="Guide", shelf_id=shelf["id"], description="About")
    chapter = await create_chapter(client, owner, book["id"], name="Intro")
    await create_page(client, owner, name="Welcome", chapter_id=chapter["id"], html="<p>Hi</p>")
    await create_page(client, owner, name="Appendix", book_id=book["id"])

    response = await client.get(f"/books/{book['slug']}/read")
    assert response.status_code == 200
    tree = response.json()
    assert tree["description"] == "About"
    assert [c["name"] for c in tree["chapters"]] == ["Intro"]
    assert tree["chapters"][0]["pages"][0]["html"] == "<p>Hi</p>"
    assert [p["name"] for p in tree["direct_pages"]] == ["Appendix"]

    response = await client.get(f"/shelves/{shelf['slug']}/read")
    assert response.status_code == 200
    assert [b["name"] for b in response.json()["books"]] == ["Guide"]

    assert (await client.get("/books/missing/read")).status_code == 404


async def test_user_management_is_admin_only(client):
    admin = await create_user(role=GlobalRole.ADMIN)
    editor = await create_user()

    assert (await client.get("/users", headers=auth_headers(editor))).status_code == 403

    response = await client.get("/users", headers=auth_headers(admin))
    assert response.status_code == 200
    assert len(response.json()) == 2

    response = await client.patch(
        f"/users/{editor.id}/role", json={"role": "viewer"}, headers=auth_headers(admin)
    )
    assert response.status_code == 200
    assert response.json()["role"] == "viewer"

    response = await client.post("/books", json={"name": "Too late"}, headers=auth_headers(editor))
    assert response.status_code == 403
