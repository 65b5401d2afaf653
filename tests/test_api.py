"""
End-to-end tests through the FastAPI app
"""
import json
from datetime import timedelta
from urllib.parse import urlparse

import pytest
from starlette.websockets import WebSocketDisconnect

from app.models.user import UserRole
from app.utils.dates import utcnow

TEST_PASSWORD = "password123"


def _due(days=5):
    return (utcnow() + timedelta(days=days)).isoformat()


class TestAuth:
    def test_signup_login_and_me(self, client, make_department):
        department = make_department("Support")

        response = client.post("/auth/signup", json={
            "name": "Sam", "email": "sam@example.com", "password": "secret1", "department_id": department.id,
        })
        assert response.status_code == 201
        assert response.json()["user"]["role"] == "STAFF"

        response = client.post("/auth/login", json={"email": "sam@example.com", "password": "secret1"})
        assert response.status_code == 200
        token = response.json()["access_token"]

        me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["email"] == "sam@example.com"

    def test_signup_duplicate_email(self, client, make_user):
        user = make_user()
        response = client.post("/auth/signup", json={
            "name": "Dup", "email": user.email, "password": "secret1", "department_id": user.department_id,
        })
        assert response.status_code == 409
        assert response.json() == {"detail": "User with this email already exists"}

    def test_bad_credentials(self, client, make_user):
        user = make_user()
        response = client.post("/auth/login", json={"email": user.email, "password": "wrong-password"})
        assert response.status_code == 400

    def test_deactivated_user_cannot_log_in(self, client, make_user):
        user = make_user(is_active=False)
        response = client.post("/auth/login", json={"email": user.email, "password": TEST_PASSWORD})
        assert response.status_code == 403

    def test_requires_token(self, client):
        assert client.get("/auth/me").status_code == 401
        assert client.get("/tasks/assigned").status_code == 401


class TestUsersAndDepartments:
    def test_hr_manages_users(self, client, make_user, make_department, auth_headers):
        hr = make_user("Hana", role=UserRole.HR_ADMIN)
        department = make_department("Finance")

        response = client.post("/users/", headers=auth_headers(hr), json={
            "name": "Fin", "email": "fin@example.com", "password": "secret1",
            "department_id": department.id, "role": "MANAGER",
        })
        assert response.status_code == 201
        user_id = response.json()["id"]

        response = client.post(f"/users/{user_id}/deactivate", headers=auth_headers(hr))
        assert response.json()["is_active"] is False

        response = client.post(f"/users/{user_id}/reset-password", headers=auth_headers(hr),
                               json={"new_password": "abc"})
        assert response.status_code == 400

    def test_delete_user_with_task_history(self, client, make_user, auth_headers):
        hr = make_user("Hana", role=UserRole.HR_ADMIN)
        staff = make_user("Sid", department=hr.department)
        client.post("/tasks/", headers=auth_headers(hr), json={
            "title": "Handover", "due_date": _due(), "assignee_ids": [staff.id],
        })

        response = client.delete(f"/users/{staff.id}", headers=auth_headers(hr))
        assert response.status_code == 400
        assert response.json() == {"detail": "Cannot delete user with task history. Deactivate instead."}

        newcomer = make_user("New", department=hr.department)
        response = client.delete(f"/users/{newcomer.id}", headers=auth_headers(hr))
        assert response.status_code == 200
        assert response.json()["message"] == "User permanently deleted"

    def test_staff_cannot_manage_users(self, client, make_user, auth_headers):
        staff = make_user()
        response = client.post("/users/", headers=auth_headers(staff), json={
            "name": "X", "email": "x@example.com", "password": "secret1", "department_id": staff.department_id,
        })
        assert response.status_code == 403

    def test_department_tree_is_public(self, client, make_department):
        root = make_department("Company")
        make_department("Engineering", parent=root)

        response = client.get("/departments/")
        assert response.status_code == 200
        assert [(d["name"], d["level"]) for d in response.json()] == [("Company", 0), ("Engineering", 1)]


class TestTeamsApi:
    def test_hr_manages_teams(self, client, make_user, make_department, auth_headers):
        hr = make_user("Hana", role=UserRole.HR_ADMIN)
        department = make_department("Support")
        lead = make_user("Lee", department=department)
        member = make_user("Mo", department=department)

        response = client.post("/teams/", headers=auth_headers(hr), json={
            "name": "Tier 1", "department_id": department.id, "leader_id": lead.id,
        })
        assert response.status_code == 201
        team_id = response.json()["id"]
        assert response.json()["leader"]["name"] == "Lee"

        response = client.post(f"/teams/{team_id}/members", headers=auth_headers(hr), json={"user_id": member.id})
        assert response.status_code == 201
        response = client.post(f"/teams/{team_id}/members", headers=auth_headers(hr), json={"user_id": member.id})
        assert response.status_code == 400

        members = client.get(f"/teams/{team_id}/members", headers=auth_headers(member)).json()
        assert [(m["name"], m["department"]["name"]) for m in members] == [("Mo", "Support")]

        by_department = client.get(f"/teams/by-department/{department.id}", headers=auth_headers(member)).json()
        assert [t["name"] for t in by_department] == ["Tier 1"]
        assert [m["user"]["id"] for m in by_department[0]["members"]] == [member.id]

        response = client.delete(f"/teams/{team_id}/members/{member.id}", headers=auth_headers(hr))
        assert response.status_code == 204

        response = client.delete(f"/teams/{team_id}", headers=auth_headers(hr))
        assert response.json()["is_active"] is False
        assert client.get("/teams/", headers=auth_headers(hr)).json() == []

    def test_staff_cannot_manage_teams(self, client, make_user, auth_headers):
        staff = make_user()
        response = client.post("/teams/", headers=auth_headers(staff), json={
            "name": "Rogue", "department_id": staff.department_id,
        })
        assert response.status_code == 403

    def test_unknown_team(self, client, make_user, auth_headers):
        response = client.get("/teams/404", headers=auth_headers(make_user()))
        assert response.status_code == 404
        assert response.json() == {"detail": "Team not found"}


class TestTaskFlow:
    def test_create_update_and_comment(self, client, make_user, auth_headers):
        alice = make_user("Alice")
        bob = make_user("Bob", department=alice.department)
        headers = auth_headers(alice)

        response = client.post("/tasks/", headers=headers, json={
            "title": "Plan sprint", "due_date": _due(), "assignee_ids": [alice.id, bob.id], "priority": 8,
        })
        assert response.status_code == 201
        task_id = response.json()["id"]

        response = client.patch(f"/tasks/{task_id}/status", headers=headers, json={"status": "IN_PROGRESS"})
        assert response.status_code == 200
        assert response.json()["start_date"] is not None

        response = client.post(f"/tasks/{task_id}/comments", headers=headers, json={"content": "Kicking off"})
        assert response.status_code == 201

        detail = client.get(f"/tasks/{task_id}", headers=headers).json()
        assert detail["priority"] == 8
        assert [c["content"] for c in detail["comments"]] == ["Kicking off"]

        logs = client.get(f"/tasks/{task_id}/logs", headers=headers).json()
        assert {log["field"] for log in logs} >= {"Task", "Status", "startDate", "Comment"}

        bob_notifications = client.get("/notifications/", headers=auth_headers(bob)).json()
        assert {n["type"] for n in bob_notifications} == {"TASK_REASSIGNED", "COMMENT_ADDED"}

    def test_validation_errors_map_to_400(self, client, make_user, auth_headers):
        alice = make_user()
        response = client.post("/tasks/", headers=auth_headers(alice), json={
            "title": "   ", "due_date": _due(), "assignee_ids": [alice.id],
        })
        assert response.status_code == 400
        assert response.json() == {"detail": "Task title must be between 1 and 255 characters"}

        response = client.post("/tasks/", headers=auth_headers(alice), json={
            "title": "ok", "due_date": _due(), "assignee_ids": [alice.id], "priority": 11,
        })
        assert response.status_code == 400
        assert response.json() == {"detail": "Priority must be between 1 and 10"}

    def test_outsider_gets_403(self, client, make_user, make_department, auth_headers):
        alice = make_user()
        outsider = make_user(department=make_department("Elsewhere"))
        task_id = client.post("/tasks/", headers=auth_headers(alice), json={
            "title": "Private", "due_date": _due(), "assignee_ids": [alice.id],
        }).json()["id"]

        response = client.get(f"/tasks/{task_id}", headers=auth_headers(outsider))
        assert response.status_code == 403

    def test_subtask_route(self, client, make_user, auth_headers):
        alice = make_user()
        headers = auth_headers(alice)
        parent_id = client.post("/tasks/", headers=headers, json={
            "title": "Parent", "due_date": _due(10), "assignee_ids": [alice.id],
        }).json()["id"]

        response = client.post(f"/tasks/{parent_id}/subtasks", headers=headers, json={
            "title": "Child", "due_date": _due(20), "assignee_ids": [alice.id],
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "Subtask deadline cannot be after parent task deadline"

        response = client.post(f"/tasks/{parent_id}/subtasks", headers=headers, json={
            "title": "Child", "due_date": _due(5), "assignee_ids": [alice.id],
        })
        assert response.status_code == 201

        hierarchy = client.get(f"/tasks/{parent_id}/hierarchy", headers=headers).json()
        assert [node["title"] for node in hierarchy["subtask_tree"]] == ["Child"]

    def test_priorities(self, client):
        response = client.get("/tasks/priorities")
        assert response.status_code == 200
        assert len(response.json()) == 10

    def test_file_upload_and_signed_download(self, client, make_user, auth_headers):
        alice = make_user()
        headers = auth_headers(alice)
        task_id = client.post("/tasks/", headers=headers, json={
            "title": "Docs", "due_date": _due(), "assignee_ids": [alice.id],
        }).json()["id"]

        response = client.post(
            f"/tasks/{task_id}/files",
            headers=headers,
            files={"file": ("notes.txt", b"meeting notes", "text/plain")},
        )
        assert response.status_code == 201
        file_id = response.json()["id"]

        rejected = client.post(
            f"/tasks/{task_id}/files",
            headers=headers,
            files={"file": ("tool.exe", b"MZ", "application/x-msdownload")},
        )
        assert rejected.status_code == 400

        link = client.get(f"/tasks/files/{file_id}/download", headers=headers).json()
        parsed = urlparse(link["url"])
        download = client.get(f"{parsed.path}?{parsed.query}")
        assert download.status_code == 200
        assert download.content == b"meeting notes"

        tampered = client.get(f"{parsed.path}?{parsed.query[:-4]}zzzz")
        assert tampered.status_code == 403


class TestProjectsApi:
    def test_duplicate_project_is_409(self, client, make_user, auth_headers):
        manager = make_user(role=UserRole.MANAGER)
        headers = auth_headers(manager)

        assert client.post("/projects/", headers=headers, json={"name": "Apollo"}).status_code == 201
        response = client.post("/projects/", headers=headers, json={"name": "apollo"})
        assert response.status_code == 409
        assert "already exists" in response.json()["detail"]

    def test_csv_report(self, client, make_user, auth_headers):
        manager = make_user(role=UserRole.MANAGER)
        hr = make_user(role=UserRole.HR_ADMIN, department=manager.department)
        project_id = client.post("/projects/", headers=auth_headers(manager), json={"name": "Apollo"}).json()["id"]

        response = client.get(f"/projects/{project_id}/report?format=csv", headers=auth_headers(hr))
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.text.startswith("Project Report,Apollo")

        assert client.get(f"/projects/{project_id}/report", headers=auth_headers(manager)).status_code == 403


class TestNotificationsApi:
    def test_unread_count_and_mark_all(self, client, make_user, auth_headers):
        alice = make_user("Alice")
        bob = make_user("Bob", department=alice.department)
        client.post("/tasks/", headers=auth_headers(alice), json={
            "title": "Ping", "due_date": _due(), "assignee_ids": [alice.id, bob.id],
        })

        assert client.get("/notifications/unread-count", headers=auth_headers(bob)).json() == {"count": 1}
        assert client.post("/notifications/read-all", headers=auth_headers(bob)).json() == {"count": 1}
        assert client.get("/notifications/unread-count", headers=auth_headers(bob)).json() == {"count": 0}


class TestCronEndpoint:
    def test_rejects_missing_secret(self, client):
        response = client.get("/api/cron/send-reminders")
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_rejects_wrong_secret(self, client):
        response = client.get("/api/cron/send-reminders", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_runs_sweep(self, client, make_user, auth_headers, sent_emails):
        alice = make_user()
        client.post("/tasks/", headers=auth_headers(alice), json={
            "title": "Due soon", "due_date": (utcnow() + timedelta(hours=3)).isoformat(),
            "assignee_ids": [alice.id],
        })

        response = client.get("/api/cron/send-reminders", headers={"Authorization": "Bearer test-cron-secret"})
        assert response.status_code == 200
        assert response.json()["message"] == "Cron job completed successfully."
        assert [m["subject"] for m in sent_emails] == ["Task Deadline Reminder"]

    def test_missing_configuration(self, client, monkeypatch):
        from app.config.settings import settings

        monkeypatch.setattr(settings, "CRON_SECRET", None)
        response = client.get("/api/cron/send-reminders", headers={"Authorization": "Bearer anything"})
        assert response.status_code == 500
        assert response.json() == {"error": "Server misconfiguration"}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_scheduler_status_when_disabled(client):
    assert client.get("/scheduler/status").json() == {"status": "stopped", "jobs": []}


class TestManualReminderTrigger:
    def _due_soon(self, client, user, auth_headers):
        client.post("/tasks/", headers=auth_headers(user), json={
            "title": "Due soon", "due_date": (utcnow() + timedelta(hours=3)).isoformat(),
            "assignee_ids": [user.id],
        })

    def test_requires_login(self, client, make_user, auth_headers, sent_emails):
        self._due_soon(client, make_user(), auth_headers)

        response = client.post("/scheduler/trigger/reminders")
        assert response.status_code == 401
        assert sent_emails == []

    def test_staff_is_forbidden(self, client, make_user, auth_headers, sent_emails):
        staff = make_user()
        self._due_soon(client, staff, auth_headers)

        response = client.post("/scheduler/trigger/reminders", headers=auth_headers(staff))
        assert response.status_code == 403
        assert sent_emails == []

    def test_hr_admin_runs_sweep(self, client, make_user, auth_headers, sent_emails):
        hr = make_user(role=UserRole.HR_ADMIN)
        self._due_soon(client, hr, auth_headers)

        response = client.post("/scheduler/trigger/reminders", headers=auth_headers(hr))
        assert response.status_code == 200
        assert response.json()["sent"] == 1
        assert [m["subject"] for m in sent_emails] == ["Task Deadline Reminder"]


class TestWebSocket:
    def test_rejects_invalid_token(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/ws?token=not-a-token") as websocket:
                websocket.receive_text()
        assert exc_info.value.code == 1008

    def test_ping_pong(self, client, make_user, auth_headers):
        user = make_user()
        token = auth_headers(user)["Authorization"].split(" ", 1)[1]

        with client.websocket_connect(f"/ws?token={token}") as websocket:
            assert websocket.receive_json()["type"] == "connection"
            websocket.send_text(json.dumps({"type": "ping"}))
            assert websocket.receive_json()["type"] == "pong"
