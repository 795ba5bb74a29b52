from app.domains.identity.entities import GlobalRole
from app.domains.sharing.services import SHARE_TOKEN_LENGTH
from tests.helpers import create_user, auth_headers, create_team, add_member, create_book, create_page


async def test_toggle_public_share(client):
    owner = await create_user(name="Author")
    book = await create_book(client, owner, name="Guide")
    page = await create_page(client, owner, name="Welcome", book_id=book["id"], html="<p>Hello</p>")
    url = f"/pages/{page['slug']}/share"

    response = await client.get(url, headers=auth_headers(owner))
    assert response.json() == {"is_public": False, "share_token": None, "share_url": None}

    response = await client.post(url, headers=auth_headers(owner))
    assert response.status_code == 200
    shared = response.json()
    assert shared["is_public"] is True
    assert len(shared["share_token"]) == SHARE_TOKEN_LENGTH
    assert shared["share_url"] == f"/share/{shared['share_token']}"

    response = await client.get(shared["share_url"])
    assert response.status_code == 200
    public = response.json()
    assert public["name"] == "Welcome"
    assert public["html"] == "<p>Hello</p>"
    assert public["book_name"] == "Guide"
    assert public["author"] == {"id": str(owner.id), "name": "Author", "image": None}

    page_data = (await client.get(f"/pages/{page['slug']}", headers=auth_headers(owner))).json()
    assert page_data["is_public"] is True

    # Выключение сохраняет токен, ссылка перестает открываться
    response = await client.post(url, headers=auth_headers(owner))
    assert response.json() == {"is_public": False, "share_token": shared["share_token"], "share_url": None}
    response = await client.get(shared["share_url"])
    assert response.status_code == 404
    assert response.json() == {"detail": "Page not found"}

    response = await client.post(url, headers=auth_headers(owner))
    assert response.json()["share_token"] == shared["share_token"]


async def test_regenerate_share_token(client):
    owner = await create_user()
    page = await create_page(client, owner)
    url = f"/pages/{page['slug']}/share"
    old = (await client.post(url, headers=auth_headers(owner))).json()

    response = await client.post(f"{url}/regenerate", headers=auth_headers(owner))
    assert response.status_code == 200
    new = response.json()
    assert new["is_public"] is True
    assert new["share_token"] != old["share_token"]

    assert (await client.get(old["share_url"])).status_code == 404
    assert (await client.get(new["share_url"])).status_code == 200
    assert (await client.get("/share/unknown-token")).status_code == 404


async def test_sharing_requires_edit_rights(client):
    owner = await create_user()
    viewer = await create_user(role=GlobalRole.VIEWER)
    stranger = await create_user()
    team = await create_team(client, owner)
    await add_member(client, team, owner, viewer)
    page = await create_page(client, owner, team_id=team["id"])
    url = f"/pages/{page['slug']}/share"

    assert (await client.get(url, headers=auth_headers(viewer))).status_code == 200
    assert (await client.post(url, headers=auth_headers(viewer))).status_code == 403
    assert (await client.post(f"{url}/regenerate", headers=auth_headers(viewer))).status_code == 403
    assert (await client.get(url, headers=auth_headers(stranger))).status_code == 403
    assert (await client.post(url)).status_code == 401
    assert (await client.post("/pages/missing/share", headers=auth_headers(owner))).status_code == 404
