import uuid
from datetime import timedelta

from sqlalchemy import update

from app.core.db import SessionLocal, atomic
from app.db.base import utc_now
from app.db.models.team import TeamInvitation as TeamInvitationModel
from app.domains.identity.entities import GlobalRole
from app.domains.teams.entities import TeamRole
from app.domains.teams.services import TeamDirectory
from tests.helpers import create_user, auth_headers, create_team, add_member, create_book


async def test_creator_becomes_owner(client):
    owner = await create_user(name="Olga")
    team = await create_team(client, owner, name="Platform Team")

    assert team["slug"] == "platform-team"
    assert [(m["user_id"], m["role"]) for m in team["members"]] == [(str(owner.id), "owner")]

    response = await client.get("/teams", headers=auth_headers(owner))
    assert response.status_code == 200
    [summary] = response.json()
    assert summary["role"] == "owner"
    assert summary["member_count"] == 1


async def test_duplicate_team_name_gets_suffixed_slug(client):
    owner = await create_user()
    first = await create_team(client, owner, name="Docs")
    second = await create_team(client, owner, name="Docs")

    assert first["slug"] == "docs"
    assert second["slug"].startswith("docs-")


async def test_team_visible_to_members_and_global_admins(client):
    owner = await create_user()
    member = await create_user()
    outsider = await create_user()
    admin = await create_user(role=GlobalRole.ADMIN)
    team = await create_team(client, owner)
    await add_member(client, team, owner, member)

    assert (await client.get(f"/teams/{team['slug']}", headers=auth_headers(member))).status_code == 200
    assert (await client.get(f"/teams/{team['slug']}", headers=auth_headers(admin))).status_code == 200
    assert (await client.get(f"/teams/{team['slug']}", headers=auth_headers(outsider))).status_code == 403
    assert (await client.get("/teams/missing", headers=auth_headers(owner))).status_code == 404


async def test_only_team_managers_add_members(client):
    owner = await create_user()
    member = await create_user()
    newcomer = await create_user()
    admin = await create_user(role=GlobalRole.ADMIN)
    team = await create_team(client, owner)
    await add_member(client, team, owner, member)

    payload = {"user_id": str(newcomer.id)}
    response = await client.post(f"/teams/{team['slug']}/members", json=payload, headers=auth_headers(member))
    assert response.status_code == 403

    # Глобальный admin не управляет чужими командами
    response = await client.post(f"/teams/{team['slug']}/members", json=payload, headers=auth_headers(admin))
    assert response.status_code == 403

    await add_member(client, team, owner, newcomer)
    response = await client.post(f"/teams/{team['slug']}/members", json=payload, headers=auth_headers(owner))
    assert response.status_code == 400


async def test_team_admin_cannot_appoint_owner(client):
    owner = await create_user()
    team_admin = await create_user()
    newcomer = await create_user()
    team = await create_team(client, owner)
    await add_member(client, team, owner, team_admin, role="admin")

    response = await client.post(
        f"/teams/{team['slug']}/members",
        json={"user_id": str(newcomer.id), "role": "owner"},
        headers=auth_headers(team_admin)
    )
    assert response.status_code == 403

    await add_member(client, team, team_admin, newcomer)


async def test_last_owner_is_kept(client):
    owner = await create_user()
    team = await create_team(client, owner)
    url = f"/teams/{team['slug']}/members/{owner.id}"

    response = await client.patch(url, json={"role": "member"}, headers=auth_headers(owner))
    assert response.status_code == 400
    assert response.json()["detail"] == "Team must keep at least one owner"

    response = await client.delete(url, headers=auth_headers(owner))
    assert response.status_code == 400


async def test_change_role_and_remove_member(client):
    owner = await create_user()
    member = await create_user()
    team = await create_team(client, owner)
    await add_member(client, team, owner, member)
    url = f"/teams/{team['slug']}/members/{member.id}"

    response = await client.patch(url, json={"role": "admin"}, headers=auth_headers(owner))
    assert response.status_code == 200
    roles = {m["user_id"]: m["role"] for m in response.json()["members"]}
    assert roles[str(member.id)] == "admin"

    response = await client.delete(url, headers=auth_headers(owner))
    assert response.status_code == 204

    response = await client.delete(url, headers=auth_headers(owner))
    assert response.status_code == 404


async def test_directory_projections(client, session):
    owner = await create_user()
    member = await create_user()
    first = await create_team(client, owner, name="First")
    second = await create_team(client, owner, name="Second")
    await add_member(client, first, owner, member, role="admin")

    directory = TeamDirectory(session)
    owner_teams = {str(team_id) for team_id in await directory.team_ids_of(owner.id)}
    assert owner_teams == {first["id"], second["id"]}
    assert await directory.membership_role(member.id, uuid.UUID(first["id"])) == TeamRole.ADMIN
    assert await directory.membership_role(member.id, uuid.UUID(second["id"])) is None

    principal = await directory.principal_for(member)
    assert principal.team_roles == {uuid.UUID(first["id"]): TeamRole.ADMIN}


async def create_invitation(client, team: dict, manager, **payload) -> dict:
    response = await client.post(
        f"/teams/{team['slug']}/invitations", json=payload, headers=auth_headers(manager)
    )
    assert response.status_code == 201, response.text
    return response.json()


async def test_update_team_renames_slug(client):
    owner = await create_user()
    member = await create_user()
    admin = await create_user(role=GlobalRole.ADMIN)
    team = await create_team(client, owner, name="Docs")
    await add_member(client, team, owner, member)
    url = f"/teams/{team['slug']}"

    response = await client.patch(url, json={"name": "Nope"}, headers=auth_headers(member))
    assert response.status_code == 403
    response = await client.patch(url, json={"name": "Nope"}, headers=auth_headers(admin))
    assert response.status_code == 403

    response = await client.patch(
        url, json={"name": "Writers Guild", "description": "Style guides"}, headers=auth_headers(owner)
    )
    assert response.status_code == 200
    updated = response.json()
    assert updated["slug"] == "writers-guild"
    assert updated["description"] == "Style guides"
    assert len(updated["members"]) == 2

    assert (await client.get(url, headers=auth_headers(owner))).status_code == 404
    response = await client.patch(
        "/teams/writers-guild", json={"description": None}, headers=auth_headers(owner)
    )
    assert response.json()["description"] is None
    assert response.json()["name"] == "Writers Guild"


async def test_renamed_team_slug_avoids_collisions(client):
    owner = await create_user()
    await create_team(client, owner, name="Ops")
    team = await create_team(client, owner, name="Infra")

    response = await client.patch(f"/teams/{team['slug']}", json={"name": "Ops"}, headers=auth_headers(owner))
    assert response.status_code == 200
    assert response.json()["slug"].startswith("ops-")


async def test_only_owner_deletes_team(client):
    owner = await create_user()
    team_admin = await create_user()
    team = await create_team(client, owner)
    await add_member(client, team, owner, team_admin, role="admin")
    book = await create_book(client, owner, team_id=team["id"])

    response = await client.delete(f"/teams/{team['slug']}", headers=auth_headers(team_admin))
    assert response.status_code == 403
    assert response.json() == {"detail": "Only team owners can delete teams"}

    assert (await client.delete(f"/teams/{team['slug']}", headers=auth_headers(owner))).status_code == 204
    assert (await client.get(f"/teams/{team['slug']}", headers=auth_headers(owner))).status_code == 404
    assert (await client.get("/teams", headers=auth_headers(team_admin))).json() == []

    # Контент команды становится личным контентом автора
    response = await client.get(f"/books/{book['slug']}", headers=auth_headers(owner))
    assert response.status_code == 200
    assert response.json()["team_id"] is None
    assert (await client.get(f"/books/{book['slug']}", headers=auth_headers(team_admin))).status_code == 403


async def test_invitation_link_adds_member(client):
    owner = await create_user()
    newcomer = await create_user()
    latecomer = await create_user()
    team = await create_team(client, owner, name="Guild")
    book = await create_book(client, owner, team_id=team["id"])

    invitation = await create_invitation(client, team, owner, role="admin", max_uses=1)
    assert invitation["invite_url"] == f"/invite/{invitation['token']}"
    assert invitation["uses"] == 0

    response = await client.get(f"/invitations/{invitation['token']}")
    assert response.status_code == 200
    info = response.json()
    assert info["team"]["slug"] == "guild"
    assert info["role"] == "admin"

    assert (await client.post(f"/invitations/{invitation['token']}/accept")).status_code == 401

    response = await client.post(f"/invitations/{invitation['token']}/accept", headers=auth_headers(newcomer))
    assert response.status_code == 200
    assert response.json() == {"success": True, "team_name": "Guild", "team_slug": "guild"}

    team_data = (await client.get("/teams/guild", headers=auth_headers(newcomer))).json()
    roles = {m["user_id"]: m["role"] for m in team_data["members"]}
    assert roles[str(newcomer.id)] == "admin"
    assert (await client.get(f"/books/{book['slug']}", headers=auth_headers(newcomer))).status_code == 200

    response = await client.post(f"/invitations/{invitation['token']}/accept", headers=auth_headers(latecomer))
    assert response.status_code == 400
    assert response.json() == {"detail": "This invitation has reached its usage limit"}

    listed = (await client.get("/teams/guild/invitations", headers=auth_headers(owner))).json()
    assert [(i["id"], i["uses"]) for i in listed] == [(invitation["id"], 1)]


async def test_member_cannot_accept_twice(client):
    owner = await create_user()
    team = await create_team(client, owner)
    invitation = await create_invitation(client, team, owner)

    response = await client.post(f"/invitations/{invitation['token']}/accept", headers=auth_headers(owner))
    assert response.status_code == 400
    assert response.json() == {"detail": "You are already a member of this team"}

    listed = (await client.get(f"/teams/{team['slug']}/invitations", headers=auth_headers(owner))).json()
    assert listed[0]["uses"] == 0


async def test_expired_invitation_is_rejected(client):
    owner = await create_user()
    newcomer = await create_user()
    team = await create_team(client, owner)
    invitation = await create_invitation(client, team, owner, expires_in_days=7)
    assert invitation["expires_at"] is not None

    async with SessionLocal() as session:
        async with atomic(session):
            await session.execute(
                update(TeamInvitationModel)
                .where(TeamInvitationModel.id == uuid.UUID(invitation["id"]))
                .values(expires_at=utc_now() - timedelta(minutes=1))
            )

    response = await client.get(f"/invitations/{invitation['token']}")
    assert response.status_code == 400
    assert response.json() == {"detail": "This invitation has expired"}

    response = await client.post(f"/invitations/{invitation['token']}/accept", headers=auth_headers(newcomer))
    assert response.status_code == 400
    assert (await client.get(f"/teams/{team['slug']}", headers=auth_headers(newcomer))).status_code == 403


async def test_invitations_are_managed_by_team_managers(client):
    owner = await create_user()
    member = await create_user()
    other_owner = await create_user()
    team = await create_team(client, owner)
    other_team = await create_team(client, other_owner, name="Other")
    await add_member(client, team, owner, member)

    url = f"/teams/{team['slug']}/invitations"
    assert (await client.post(url, json={}, headers=auth_headers(member))).status_code == 403
    assert (await client.get(url, headers=auth_headers(member))).status_code == 403

    response = await client.post(url, json={"role": "owner"}, headers=auth_headers(owner))
    assert response.status_code == 400

    invitation = await create_invitation(client, team, owner)
    foreign = await create_invitation(client, other_team, other_owner)

    response = await client.delete(f"{url}/{foreign['id']}", headers=auth_headers(owner))
    assert response.status_code == 404
    assert response.json() == {"detail": "Invitation not found"}

    assert (await client.delete(f"{url}/{invitation['id']}", headers=auth_headers(owner))).status_code == 204
    response = await client.get(f"/invitations/{invitation['token']}")
    assert response.status_code == 404
    assert response.json() == {"detail": "Invalid invitation link"}
