"""Integration tests for public and admin waitlist endpoints."""

import pytest
from tests.conftest import make_customer_user, override_auth
from tests.factories import LessonFactory, SwimmerFactory, persist


async def _swimmers(db, count):
    swimmers = [SwimmerFactory.create(name=f"Swimmer {i}") for i in range(count)]
    await persist(db, *swimmers)
    return swimmers


@pytest.mark.asyncio
@pytest.mark.integration
async def test_join_and_status(lessons_client, db_session):
    """POST /waitlist/join then GET /waitlist/status/{swimmer_id}."""
    (swimmer,) = await _swimmers(db_session, 1)

    from services.lessons_service.app.main import app

    with override_auth(app, make_customer_user()):
        joined = await lessons_client.post(
            "/waitlist/join", json={"swimmer_id": swimmer.id, "notes": "Any weekday"}
        )
        status = await lessons_client.get(f"/waitlist/status/{swimmer.id}")

    assert joined.status_code == 201, joined.text
    assert joined.json()["position"] == 1
    assert status.json()["on_waitlist"] is True
    assert status.json()["entry"]["id"] == joined.json()["id"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_join_twice_conflicts(lessons_client, db_session):
    (swimmer,) = await _swimmers(db_session, 1)

    await lessons_client.post("/waitlist/join", json={"swimmer_id": swimmer.id})
    again = await lessons_client.post("/waitlist/join", json={"swimmer_id": swimmer.id})

    assert again.status_code == 409
    assert again.json()["detail"]["code"] == "already_waitlisted"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_status_when_not_waiting(lessons_client, db_session):
    (swimmer,) = await _swimmers(db_session, 1)

    response = await lessons_client.get(f"/waitlist/status/{swimmer.id}")

    assert response.status_code == 200
    assert response.json() == {"on_waitlist": False, "entry": None}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_remove_renumbers(lessons_client, db_session):
    swimmers = await _swimmers(db_session, 3)
    ids = []
    for swimmer in swimmers:
        joined = await lessons_client.post("/waitlist/join", json={"swimmer_id": swimmer.id})
        ids.append(joined.json()["id"])

    removed = await lessons_client.delete(f"/admin/waitlist/{ids[0]}")
    assert removed.status_code == 200, removed.text
    assert removed.json()["status"] == "inactive"

    listing = await lessons_client.get("/admin/waitlist")
    assert [entry["id"] for entry in listing.json()] == ids[1:]
    assert [entry["position"] for entry in listing.json()] == [1, 2]

    gone_again = await lessons_client.delete(f"/admin/waitlist/{ids[0]}")
    assert gone_again.status_code == 409


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_clear(lessons_client, db_session):
    for swimmer in await _swimmers(db_session, 2):
        await lessons_client.post("/waitlist/join", json={"swimmer_id": swimmer.id})

    response = await lessons_client.delete("/admin/waitlist")

    assert response.json() == {"cleared": 2}
    assert (await lessons_client.get("/admin/waitlist")).json() == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_promote(lessons_client, db_session):
    """POST /admin/waitlist/promote: enrolls the swimmer and drops the entry."""
    first, second = await _swimmers(db_session, 2)
    lesson = await persist(db_session, LessonFactory.create(max_slots=2))
    entry = (await lessons_client.post("/waitlist/join", json={"swimmer_id": first.id})).json()
    await lessons_client.post("/waitlist/join", json={"swimmer_id": second.id})

    response = await lessons_client.post(
        "/admin/waitlist/promote",
        json={"waitlist_id": entry["id"], "lesson_id": lesson.id},
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert [p["swimmer_id"] for p in data["lesson"]["participants"]] == [first.id]
    assert data["lesson"]["participants"][0]["instructor_notes"]
    assert [(e["swimmer_id"], e["position"]) for e in data["waitlist"]] == [(second.id, 1)]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_promote_into_full_lesson(lessons_client, db_session):
    first, second = await _swimmers(db_session, 2)
    lesson = await persist(db_session, LessonFactory.create(max_slots=1))
    lesson_id = lesson.id
    await lessons_client.post(
        "/enrollments", json={"swimmer_id": first.id, "lesson_id": lesson_id}
    )
    entry = (await lessons_client.post("/waitlist/join", json={"swimmer_id": second.id})).json()

    response = await lessons_client.post(
        "/admin/waitlist/promote",
        json={"waitlist_id": entry["id"], "lesson_id": lesson_id},
    )

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "lesson_full"
    listing = await lessons_client.get("/admin/waitlist")
    assert [e["id"] for e in listing.json()] == [entry["id"]]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_routes_require_admin(lessons_client):
    from services.lessons_service.app.main import app

    with override_auth(app, make_customer_user()):
        response = await lessons_client.get("/admin/waitlist")
    assert response.status_code == 403
