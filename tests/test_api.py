from fastapi.testclient import TestClient
from passlib.hash import pbkdf2_sha256

from projectdash.main import create_app
from projectdash.storage import MemStorage, StorageError


def create_project(client, **fields):
    body = {"name": "Alpha", **fields}
    response = client.post("/api/projects", json=body)
    assert response.status_code == 201
    return response.json()


def test_stats_empty(client):
    response = client.get("/api/stats")

    assert response.status_code == 200
    assert response.json() == {"activeProjects": 0, "tasks": 0, "milestones": 0, "completed": 0}


def test_create_project_returns_camel_case(client):
    project = create_project(client, startDate="2023-04-01", managerId=1, budget=1000)

    assert project["id"] == 1
    assert project["startDate"] == "2023-04-01"
    assert project["managerId"] == 1
    assert project["status"] == "On Track"
    assert project["progress"] == 0
    assert "createdAt" in project and "updatedAt" in project


def test_get_project(client):
    project = create_project(client)

    response = client.get(f"/api/projects/{project['id']}")

    assert response.status_code == 200
    assert response.json()["name"] == "Alpha"


def test_get_missing_project_is_404(client):
    response = client.get("/api/projects/999")

    assert response.status_code == 404
    assert response.json() == {"message": "Project not found"}


def test_invalid_project_id_is_400(client):
    response = client.get("/api/projects/abc")

    assert response.status_code == 400
    assert response.json() == {"message": "Invalid project ID"}


def test_create_project_validation_errors(client, storage):
    response = client.post("/api/projects", json={"progress": 150, "status": "Done"})

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Invalid project data"
    paths = [tuple(err["path"]) for err in body["errors"]]
    assert ("name",) in paths
    assert ("progress",) in paths
    assert ("status",) in paths
    assert storage.get_projects() == []


def test_patch_project(client):
    project = create_project(client, description="keep me")

    response = client.patch(f"/api/projects/{project['id']}", json={"progress": 50, "status": "At Risk"})

    assert response.status_code == 200
    body = response.json()
    assert body["progress"] == 50
    assert body["status"] == "At Risk"
    assert body["description"] == "keep me"


def test_patch_rejects_null_name(client):
    project = create_project(client)

    response = client.patch(f"/api/projects/{project['id']}", json={"name": None})

    assert response.status_code == 400
    assert client.get(f"/api/projects/{project['id']}").json()["name"] == "Alpha"


def test_patch_missing_project_leaves_stats(client):
    create_project(client)
    before = client.get("/api/stats").json()

    response = client.patch("/api/projects/999", json={"progress": 50})

    assert response.status_code == 404
    assert client.get("/api/stats").json() == before


def test_delete_project(client):
    project = create_project(client)

    assert client.delete(f"/api/projects/{project['id']}").status_code == 204
    assert client.delete(f"/api/projects/{project['id']}").status_code == 404
    assert client.get("/api/projects").json() == []


def test_tasks_filter_by_project(client):
    for project_id in (1, 2, 1):
        response = client.post("/api/tasks", json={"name": "t", "dueDate": "2023-05-01", "projectId": project_id})
        assert response.status_code == 201

    all_tasks = client.get("/api/tasks").json()
    filtered = client.get("/api/tasks", params={"projectId": 1}).json()

    assert len(all_tasks) == 3
    assert [t["id"] for t in filtered] == [1, 3]


def test_task_requires_due_date(client):
    response = client.post("/api/tasks", json={"name": "t"})

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid task data"
    assert ["dueDate"] in [err["path"] for err in response.json()["errors"]]


def test_task_lifecycle_updates_stats(client):
    task = client.post("/api/tasks", json={"name": "t", "dueDate": "2023-05-01"}).json()
    assert task["completed"] is False

    response = client.patch(f"/api/tasks/{task['id']}", json={"completed": True})
    assert response.status_code == 200
    assert client.get("/api/stats").json()["completed"] == 1

    assert client.delete(f"/api/tasks/{task['id']}").status_code == 204
    assert client.delete(f"/api/tasks/{task['id']}").status_code == 404
    assert client.get(f"/api/tasks/{task['id']}").status_code == 404


def test_milestones(client):
    response = client.post("/api/milestones", json={"name": "MVP", "dueDate": "2023-06-01", "projectId": 4})
    assert response.status_code == 201
    milestone = response.json()
    assert "updatedAt" not in milestone

    assert client.get("/api/milestones", params={"projectId": 4}).json()[0]["id"] == milestone["id"]
    assert client.patch("/api/milestones/99", json={"completed": True}).status_code == 404
    assert client.patch(f"/api/milestones/{milestone['id']}", json={"completed": True}).json()["completed"]
    assert client.get("/api/milestones/abc").json() == {"message": "Invalid milestone ID"}


def test_insights_endpoints(client):
    response = client.post("/api/insights", json={"message": "Watch budget", "projectId": 2, "type": "warning"})
    assert response.status_code == 201

    assert client.post("/api/insights", json={"message": "x", "type": "panic"}).status_code == 400
    assert len(client.get("/api/insights").json()) == 1
    assert client.get("/api/insights", params={"projectId": 3}).json() == []


def test_generate_insights_scenario(client):
    alpha = create_project(client, status="At Risk")

    first = client.post("/api/generate-insights")
    assert first.status_code == 200
    assert [i["projectId"] for i in first.json()] == [alpha["id"]]
    assert first.json()[0]["type"] == "info"

    second = client.post("/api/generate-insights").json()
    assert [i["projectId"] for i in second] == [alpha["id"], alpha["id"]]

    third = client.post("/api/generate-insights", params={"deduplicate": "true"}).json()
    assert len(third) == 2


def test_create_user_hashes_password(client, storage):
    response = client.post("/api/users", json={"username": "maria", "password": "s3cret",
                                               "email": "maria@example.com", "avatarColor": "bg-purple-500"})

    assert response.status_code == 201
    body = response.json()
    assert "password" not in body
    assert body["avatarColor"] == "bg-purple-500"
    assert pbkdf2_sha256.verify("s3cret", storage.get_user(body["id"]).password)
    assert client.get(f"/api/users/{body['id']}").json()["username"] == "maria"


def test_duplicate_username_is_400(client):
    client.post("/api/users", json={"username": "maria", "password": "a"})

    response = client.post("/api/users", json={"username": "maria", "password": "b"})

    assert response.status_code == 400
    assert response.json() == {"message": "Username already registered"}


def test_invalid_email_is_400(client):
    response = client.post("/api/users", json={"username": "maria", "password": "a", "email": "nope"})

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid user data"


def test_team_members(client):
    response = client.post("/api/projects/1/team", json={"userId": 2, "role": "Developer"})
    assert response.status_code == 201
    member = response.json()
    assert member["projectId"] == 1

    assert [m["id"] for m in client.get("/api/projects/1/team").json()] == [member["id"]]
    assert client.post("/api/projects/1/team", json={}).json()["message"] == "Invalid team member data"
    assert client.delete(f"/api/team-members/{member['id']}").status_code == 204
    assert client.delete(f"/api/team-members/{member['id']}").status_code == 404


class FailingStorage(MemStorage):
    def get_projects(self):
        raise StorageError("connection lost")


def test_backend_failure_is_500():
    with TestClient(create_app(FailingStorage(seed=False))) as client:
        response = client.get("/api/projects")

    assert response.status_code == 500
    assert response.json() == {"message": "Internal server error"}


def test_database_backend_behind_api(db_storage):
    with TestClient(create_app(db_storage)) as client:
        project = create_project(client, status="At Risk")
        patched = client.patch(f"/api/projects/{project['id']}", json={"progress": 40}).json()
        insights = client.post("/api/generate-insights").json()

    assert patched["progress"] == 40
    assert [i["projectId"] for i in insights] == [project["id"]]


class CrashingStorage(MemStorage):
    def get_projects(self):
        raise RuntimeError("unexpected")


def test_unexpected_error_is_json_500(caplog):
    app = create_app(CrashingStorage(seed=False))
    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/api/projects")

    assert response.status_code == 500
    assert response.headers["content-type"] == "application/json"
    assert response.json() == {"message": "Internal server error"}
    assert "RuntimeError: unexpected" in caplog.text


def test_project_body_types_are_not_coerced(client, storage):
    assert client.post("/api/projects", json={"name": "A", "progress": "50"}).status_code == 400
    assert client.post("/api/projects", json={"name": "A", "budget": "100"}).status_code == 400
    assert client.post("/api/projects", json={"name": "A", "managerId": "1"}).status_code == 400
    assert storage.get_projects() == []

    project = create_project(client)
    response = client.patch(f"/api/projects/{project['id']}", json={"progress": "50"})
    assert response.status_code == 400
    assert ["progress"] in [err["path"] for err in response.json()["errors"]]


def test_task_body_types_are_not_coerced(client, storage):
    response = client.post("/api/tasks", json={"name": "T", "dueDate": "x", "completed": "yes"})
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid task data"

    assert client.post("/api/tasks", json={"name": "T", "dueDate": "x", "completed": 1}).status_code == 400
    assert client.post("/api/tasks", json={"name": "T", "dueDate": "x", "projectId": "2"}).status_code == 400
    assert client.post("/api/milestones", json={"name": "M", "dueDate": "x", "completed": "no"}).status_code == 400
    assert client.post("/api/projects/1/team", json={"userId": "2"}).status_code == 400
    assert storage.get_tasks() == []


def test_timestamps_match_across_backends(storage, db_storage):
    for backend in (storage, db_storage):
        with TestClient(create_app(backend)) as client:
            project = create_project(client)
        assert project["createdAt"].endswith("Z")
        assert project["updatedAt"].endswith("Z")


def test_invalid_project_id_on_team_route(client):
    response = client.get("/api/projects/abc/team")

    assert response.status_code == 400
    assert response.json() == {"message": "Invalid project ID"}
