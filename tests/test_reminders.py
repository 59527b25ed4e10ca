from http import HTTPStatus

from reminder_hub import models


def test_create_reminder_defaults(client, auth_headers, group_factory):
    group = group_factory()

    resp = client.post(
        f"/api/groups/{group['id']}/reminders",
        json={"title": "Trash"},
        headers=auth_headers,
    )

    assert resp.status_code == HTTPStatus.CREATED
    body = resp.json()
    assert body["title"] == "Trash"
    assert body["description"] == ""
    assert body["completed"] is False
    assert body["due_date"] is None
    assert body["group_id"] == group["id"]
    assert body["creator"]["username"] == "alice"


def test_create_reminder_with_due_date(client, group_factory, reminder_factory):
    group = group_factory()

    body = reminder_factory(
        group["id"], "Dentist", description="Bring card", due_date="2030-05-01T09:30:00"
    )

    assert body["description"] == "Bring card"
    assert body["due_date"].startswith("2030-05-01T09:30:00")


def test_create_reminder_in_missing_group(client, auth_headers, db_session):
    resp = client.post("/api/groups/999/reminders", json={"title": "Trash"}, headers=auth_headers)

    assert resp.status_code == HTTPStatus.NOT_FOUND
    assert resp.json() == {"error": "Group not found"}
    assert db_session.query(models.Reminder).count() == 0


def test_create_reminder_requires_title(client, auth_headers, group_factory):
    group = group_factory()

    missing = client.post(f"/api/groups/{group['id']}/reminders", json={}, headers=auth_headers)
    too_long = client.post(
        f"/api/groups/{group['id']}/reminders", json={"title": "x" * 201}, headers=auth_headers
    )

    assert missing.status_code == HTTPStatus.BAD_REQUEST
    assert too_long.status_code == HTTPStatus.BAD_REQUEST


def test_list_reminders_newest_first(client, auth_headers, group_factory, reminder_factory):
    group = group_factory()
    for title in ("first", "second", "third"):
        reminder_factory(group["id"], title)

    resp = client.get(f"/api/groups/{group['id']}/reminders", headers=auth_headers)

    assert resp.status_code == HTTPStatus.OK
    assert [r["title"] for r in resp.json()] == ["third", "second", "first"]


def test_list_reminders_of_missing_group(client, auth_headers):
    resp = client.get("/api/groups/5/reminders", headers=auth_headers)

    assert resp.status_code == HTTPStatus.NOT_FOUND


def test_partial_update_only_touches_sent_fields(client, auth_headers, group_factory, reminder_factory):
    group = group_factory()
    created = reminder_factory(
        group["id"], "Trash", description="Bins out", due_date="2030-05-01T09:30:00"
    )

    resp = client.put(
        f"/api/reminders/{created['id']}", json={"completed": True}, headers=auth_headers
    )

    assert resp.status_code == HTTPStatus.OK
    body = resp.json()
    assert body["completed"] is True
    assert body["title"] == created["title"]
    assert body["description"] == created["description"]
    assert body["due_date"] == created["due_date"]


def test_update_title_keeps_completion(client, auth_headers, group_factory, reminder_factory):
    group = group_factory()
    created = reminder_factory(group["id"], "Trash")
    client.put(f"/api/reminders/{created['id']}", json={"completed": True}, headers=auth_headers)

    resp = client.put(f"/api/reminders/{created['id']}", json={"title": "Recycling"}, headers=auth_headers)

    body = resp.json()
    assert body["title"] == "Recycling"
    assert body["completed"] is True


def test_update_can_clear_description_and_due_date(client, auth_headers, group_factory, reminder_factory):
    group = group_factory()
    created = reminder_factory(
        group["id"], "Trash", description="Bins out", due_date="2030-05-01T09:30:00"
    )

    resp = client.put(
        f"/api/reminders/{created['id']}",
        json={"description": "", "due_date": None},
        headers=auth_headers,
    )

    body = resp.json()
    assert body["description"] == ""
    assert body["due_date"] is None
    assert body["title"] == "Trash"


def test_empty_update_changes_nothing(client, auth_headers, group_factory, reminder_factory):
    group = group_factory()
    created = reminder_factory(group["id"], "Trash", description="Bins out")

    resp = client.put(f"/api/reminders/{created['id']}", json={}, headers=auth_headers)

    assert resp.status_code == HTTPStatus.OK
    body = resp.json()
    for field in ("title", "description", "completed", "due_date"):
        assert body[field] == created[field]


def test_update_rejects_null_for_required_fields(client, auth_headers, group_factory, reminder_factory):
    group = group_factory()
    created = reminder_factory(group["id"], "Trash")

    for field in ("title", "completed", "description"):
        resp = client.put(f"/api/reminders/{created['id']}", json={field: None}, headers=auth_headers)
        assert resp.status_code == HTTPStatus.BAD_REQUEST


def test_update_missing_reminder(client, auth_headers):
    resp = client.put("/api/reminders/77", json={"completed": True}, headers=auth_headers)

    assert resp.status_code == HTTPStatus.NOT_FOUND
    assert resp.json() == {"error": "Reminder not found"}


def test_delete_reminder(client, auth_headers, group_factory, reminder_factory, db_session):
    group = group_factory()
    created = reminder_factory(group["id"], "Trash")

    resp = client.delete(f"/api/reminders/{created['id']}", headers=auth_headers)

    assert resp.status_code == HTTPStatus.OK
    assert resp.json() == {"message": "Reminder deleted successfully"}
    assert db_session.get(models.Reminder, created["id"]) is None

    again = client.delete(f"/api/reminders/{created['id']}", headers=auth_headers)
    assert again.status_code == HTTPStatus.NOT_FOUND


def test_reminder_routes_require_authentication(client, group_factory, reminder_factory):
    group = group_factory()
    created = reminder_factory(group["id"], "Trash")

    assert client.put(f"/api/reminders/{created['id']}", json={"completed": True}).status_code == 401
    assert client.delete(f"/api/reminders/{created['id']}").status_code == 401
