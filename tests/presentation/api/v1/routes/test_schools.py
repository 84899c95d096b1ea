"""Test school creation, public lookup and settings endpoints"""

import pytest
from fastapi import status

from src.domain.enums import TenantStatus

NEW_SCHOOL = {
    "school_name": "Sunrise Academy",
    "slug": "sunrise-academy",
    "email": "office@sunrise.example.com",
    "phone": "01711111111",
    "address": "12 Lake Road",
}


async def signup(client, email: str = "founder@example.com") -> dict[str, str]:
    response = await client.post(
        "/auth/signup",
        json={"email": email, "password": "testpass123", "full_name": "Ada Founder"},
    )
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.mark.asyncio
async def test_create_school_end_to_end(client):
    """
    GIVEN a freshly signed-up account
    WHEN it creates a school
    THEN the school is public, seeded, and the account lands on its dashboard
    """
    headers = await signup(client)

    response = await client.post("/schools", json=NEW_SCHOOL, headers=headers)

    assert response.status_code == status.HTTP_201_CREATED
    school = response.json()
    assert school["slug"] == "sunrise-academy"
    assert school["status"] == "active"
    assert school["settings"]["contact"]["email"] == "office@sunrise.example.com"

    session = (await client.get("/auth/session", headers=headers)).json()
    assert session["state"] == "bound"
    assert session["role"] == "owner"
    assert session["redirect_to"] == "/sunrise-academy/dashboard"

    public = await client.get("/schools/Sunrise-Academy")
    assert public.status_code == 200
    assert public.json()["id"] == school["id"]

    sections = (await client.get("/schools/sunrise-academy/content")).json()
    assert {s["section"] for s in sections} == {
        "hero",
        "about",
        "gallery",
        "notices",
        "students",
        "location",
    }


@pytest.mark.asyncio
async def test_create_school_requires_session(client):
    response = await client.post("/schools", json=NEW_SCHOOL)

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.asyncio
async def test_create_school_slug_taken(client, school):
    headers = await signup(client)

    response = await client.post(
        "/schools", json={**NEW_SCHOOL, "slug": school.slug.upper()}, headers=headers
    )

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["details"] == {"field": "slug"}


@pytest.mark.asyncio
async def test_create_school_reserved_slug(client):
    headers = await signup(client)

    response = await client.post("/schools", json={**NEW_SCHOOL, "slug": "admin"}, headers=headers)

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
async def test_owner_cannot_create_second_school(client, owner):
    response = await client.post("/schools", json=NEW_SCHOOL, headers=owner.headers)

    assert response.status_code == status.HTTP_409_CONFLICT


@pytest.mark.asyncio
async def test_check_slug(client, school):
    free = await client.get("/schools/check-slug", params={"slug": "Brand New School"})
    taken = await client.get("/schools/check-slug", params={"slug": school.slug})

    assert free.json() == {"slug": "brand-new-school", "available": True, "reason": None}
    assert taken.json()["available"] is False
    assert taken.json()["reason"] == "taken"


@pytest.mark.asyncio
async def test_unknown_and_provisioning_schools_look_the_same(client, make_school):
    await make_school("half-built-school", status=TenantStatus.PROVISIONING)

    missing = await client.get("/schools/never-existed")
    hidden = await client.get("/schools/half-built-school")

    assert missing.status_code == hidden.status_code == status.HTTP_404_NOT_FOUND
    assert missing.json() == hidden.json()


@pytest.mark.asyncio
async def test_teacher_reads_but_cannot_change_settings(client, school, teacher):
    read = await client.get(f"/schools/{school.slug}/settings", headers=teacher.headers)
    write = await client.put(
        f"/schools/{school.slug}/settings", json={"theme": "red"}, headers=teacher.headers
    )

    assert read.status_code == 200
    assert write.status_code == status.HTTP_403_FORBIDDEN
    assert "role_forbidden" not in write.text


@pytest.mark.asyncio
async def test_owner_updates_settings(client, school, owner):
    response = await client.put(
        f"/schools/{school.slug}/settings",
        json={"name": "Green Valley High", "theme": "blue", "features": {"enableResults": False}},
        headers=owner.headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Green Valley High"
    assert data["slug"] == school.slug
    assert data["settings"]["theme"] == "blue"
    assert data["settings"]["features"] == {"enableResults": False}


@pytest.mark.asyncio
async def test_other_schools_owner_cannot_touch_settings(client, school, other_owner):
    response = await client.put(
        f"/schools/{school.slug}/settings", json={"theme": "red"}, headers=other_owner.headers
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["code"] == "FORBIDDEN"
    assert "wrong_tenant" not in response.text
