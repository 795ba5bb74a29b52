import uuid
from typing import Optional

from app.core.db import SessionLocal, atomic
from app.core.security import create_access_token, get_password_hash
from app.db.repositories.user_repository import UserRepository
from app.domains.identity.entities import User, GlobalRole, Principal
from app.domains.teams.services import TeamDirectory

PASSWORD = "secret123"
PASSWORD_HASH = get_password_hash(PASSWORD)


async def create_user(
    role: GlobalRole = GlobalRole.EDITOR,
    name: Optional[str] = None,
    email: Optional[str] = None
) -> User:
    user = User(
        id=uuid.uuid4(),
        email=email or f"user-{uuid.uuid4().hex[:8]}@example.com",
        name=name or "Tester",
        password_hash=PASSWORD_HASH,
        role=role
    )
    async with SessionLocal() as session:
        async with atomic(session):
            await UserRepository(session).create(user)
    return user


async def principal_of(user: User) -> Principal:
    async with SessionLocal() as session:
        return await TeamDirectory(session).principal_for(user)


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": str(user.id), "email": user.email})
    return {"Authorization": f"Bearer {token}"}


async def create_team(client, owner: User, name: str = "Docs Team") -> dict:
    response = await client.post("/teams", json={"name": name}, headers=auth_headers(owner))
    assert response.status_code == 201, response.text
    return response.json()


async def add_member(client, team: dict, manager: User, member: User, role: str = "member") -> dict:
    response = await client.post(
        f"/teams/{team['slug']}/members",
        json={"user_id": str(member.id), "role": role},
        headers=auth_headers(manager)
    )
    assert response.status_code == 201, response.text
    return response.json()


async def create_entity(client, user: User, path: str, **payload) -> dict:
    payload = {k: str(v) if isinstance(v, uuid.UUID) else v for k, v in payload.items()}
    response = await client.post(path, json=payload, headers=auth_headers(user))
    assert response.status_code == 201, response.text
    return response.json()


async def create_shelf(client, user: User, name: str = "Shelf", **payload) -> dict:
    return await create_entity(client, user, "/shelves", name=name, **payload)


async def create_book(client, user: User, name: str = "Handbook", **payload) -> dict:
    return await create_entity(client, user, "/books", name=name, **payload)


async def create_chapter(client, user: User, book_id, name: str = "Chapter", **payload) -> dict:
    return await create_entity(client, user, "/chapters", name=name, book_id=book_id, **payload)


async def create_page(client, user: User, name: str = "Page", **payload) -> dict:
    return await create_entity(client, user, "/pages", name=name, **payload)
