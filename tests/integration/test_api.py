from datetime import datetime, timedelta

from bson import ObjectId
from jose import jwt

from config import JWT_SECRET, JWT_ALGORITHM
from tests.conftest import register


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_register_and_me(client, user, auth):
    assert user["user"]["email"] == "ada@example.com"
    assert "password_hash" not in user["user"]

    resp = client.get("/api/auth/me", headers=auth)

    assert resp.status_code == 200
    assert resp.json()["user"]["name"] == "Ada"


def test_register_duplicate_email(client, user):
    resp = client.post(
        "/api/auth/register",
        json={"email": "ADA@example.com ", "password": "another", "name": "Other"},
    )
    assert resp.status_code == 400


def test_register_short_password(client):
    resp = client.post("/api/auth/register", json={"email": "x@example.com", "password": "123", "name": "X"})
    assert resp.status_code == 422


def test_login(client, user):
    ok = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "secret1"})
    bad = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "wrong-password"})

    assert ok.status_code == 200
    assert ok.json()["user"]["id"] == user["user"]["id"]
    assert bad.status_code == 401


def test_update_user(client, auth):
    resp = client.put("/api/auth/update", json={"name": "Ada L.", "password": "newsecret"}, headers=auth)
    assert resp.status_code == 200
    assert resp.json()["user"]["name"] == "Ada L."

    login = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "newsecret"})
    assert login.status_code == 200


def test_bad_token_is_rejected(client):
    resp = client.get("/api/sessions", headers={"Authorization": "Bearer not-a-token"})
    assert resp.status_code == 401


def test_session_crud(client, auth):
    created = client.post(
        "/api/sessions",
        json={"subject": "Math", "minutes": 25, "date": "2024-01-01", "notes": "ch. 3"},
        headers=auth,
    )
    assert created.status_code == 201
    session_id = created.json()["session"]["id"]

    updated = client.put(f"/api/sessions/{session_id}", json={"minutes": 40}, headers=auth)
    assert updated.json()["session"]["minutes"] == 40
    assert updated.json()["session"]["subject"] == "Math"

    listed = client.get("/api/sessions", headers=auth).json()["sessions"]
    assert [s["id"] for s in listed] == [session_id]

    assert client.delete(f"/api/sessions/{session_id}", headers=auth).status_code == 200
    assert client.delete(f"/api/sessions/{session_id}", headers=auth).status_code == 404


def test_session_rejects_bad_date_and_id(client, auth):
    bad_date = client.post("/api/sessions", json={"subject": "Math", "minutes": 5, "date": "1/1/2024"}, headers=auth)
    bad_id = client.delete("/api/sessions/not-an-id", headers=auth)

    assert bad_date.status_code == 400
    assert bad_id.status_code == 400


def test_sessions_filtered_by_date_range(client, auth):
    for day in ("2024-01-01", "2024-01-05", "2024-01-10"):
        client.post("/api/sessions", json={"subject": "Math", "minutes": 5, "date": day}, headers=auth)

    resp = client.get("/api/sessions?start_date=2024-01-02&end_date=2024-01-10", headers=auth)

    assert [s["date"] for s in resp.json()["sessions"]] == ["2024-01-10", "2024-01-05"]


def test_sessions_are_scoped_to_owner(client, auth):
    created = client.post("/api/sessions", json={"subject": "Math", "minutes": 5, "date": "2024-01-01"}, headers=auth)
    session_id = created.json()["session"]["id"]

    other = register(client, email="bob@example.com", name="Bob")
    other_auth = {"Authorization": f"Bearer {other['token']}"}

    assert client.get("/api/sessions", headers=other_auth).json()["sessions"] == []
    assert client.delete(f"/api/sessions/{session_id}", headers=other_auth).status_code == 404


def test_session_stats(client, auth):
    client.post("/api/sessions", json={"subject": "Math", "minutes": 30, "date": "2024-01-01"}, headers=auth)
    client.post("/api/sessions", json={"subject": "Art", "minutes": 45, "date": "2024-01-02"}, headers=auth)

    resp = client.get("/api/sessions/stats?today=2024-01-02", headers=auth)

    assert resp.status_code == 200
    assert resp.json() == {
        "total_minutes": 75,
        "best_date": "2024-01-02",
        "best_date_minutes": 45,
        "current_streak": 2,
        "highest_streak": 2,
    }


def test_session_stats_bad_today(client, auth):
    resp = client.get("/api/sessions/stats?today=tomorrow", headers=auth)
    assert resp.status_code == 400


def test_session_stats_with_corrupt_stored_date(client, auth, user, mongo_db):
    mongo_db["sessions"].insert_one({"user_id": user["user"]["id"], "subject": "Math", "minutes": 5, "date": "01/02/2024"})

    resp = client.get("/api/sessions/stats?today=2024-01-02", headers=auth)

    assert resp.status_code == 400


def test_session_charts(client, auth):
    client.post("/api/subjects", json={"name": "Math"}, headers=auth)
    client.post("/api/sessions", json={"subject": "Math", "minutes": 20, "date": "2024-01-07"}, headers=auth)
    client.post("/api/sessions", json={"subject": "Latin", "minutes": 10, "date": "2024-01-07"}, headers=auth)
    client.post("/api/sessions", json={"subject": "Math", "minutes": 30, "date": "2024-01-01"}, headers=auth)

    daily = client.get("/api/sessions/chart?range=daily&today=2024-01-07", headers=auth).json()
    weekly = client.get("/api/sessions/chart?range=weekly&today=2024-01-07", headers=auth).json()
    monthly = client.get("/api/sessions/chart?range=monthly&today=2024-01-07", headers=auth).json()
    breakdown = client.get("/api/sessions/breakdown", headers=auth).json()

    assert daily["data"] == [{"name": "Math", "minutes": 20}, {"name": "(Deleted)", "minutes": 10}]
    assert [d["date"] for d in weekly["data"]][0] == "2024-01-01"
    assert [d["minutes"] for d in weekly["data"]] == [30, 0, 0, 0, 0, 0, 30]
    assert monthly["data"][-1]["minutes"] == 60
    assert breakdown["subjects"][0] == {"name": "Math", "minutes": 50}


def test_subject_crud(client, auth):
    created = client.post("/api/subjects", json={"name": "Physics"}, headers=auth)
    assert created.status_code == 201
    subject = created.json()["subject"]
    assert subject["color"] == "#c77541"

    updated = client.put(f"/api/subjects/{subject['id']}", json={"color": "#000000"}, headers=auth)
    assert updated.json()["subject"]["color"] == "#000000"

    assert client.delete(f"/api/subjects/{subject['id']}", headers=auth).status_code == 200
    assert client.get("/api/subjects", headers=auth).json()["subjects"] == []


def test_task_completion_toggle_and_cascade(client, auth):
    task = client.post("/api/tasks", json={"name": "Read", "created_date": "2024-01-03"}, headers=auth).json()["task"]

    first = client.post("/api/tasks/completions", json={"task_id": task["id"], "date": "2024-01-04"}, headers=auth)
    second = client.post("/api/tasks/completions", json={"task_id": task["id"], "date": "2024-01-04"}, headers=auth)

    assert first.status_code == 201
    assert first.json()["completion"]["completed"] is True
    assert second.status_code == 200
    assert second.json()["completion"]["completed"] is False

    assert client.delete(f"/api/tasks/{task['id']}", headers=auth).status_code == 200
    assert client.get("/api/tasks/completions", headers=auth).json()["completions"] == []


def test_toggle_unknown_task(client, auth):
    resp = client.post(
        "/api/tasks/completions",
        json={"task_id": "65a000000000000000000000", "date": "2024-01-04"},
        headers=auth,
    )
    assert resp.status_code == 404


def test_task_stats_weekly(client, auth):
    task = client.post("/api/tasks", json={"name": "Read", "created_date": "2024-01-03"}, headers=auth).json()["task"]
    client.post("/api/tasks/completions", json={"task_id": task["id"], "date": "2024-01-04"}, headers=auth)

    resp = client.get("/api/tasks/stats?range=weekly&today=2024-01-04", headers=auth)
    data = resp.json()

    assert resp.status_code == 200
    assert data["dates"][0] == "2023-12-31"
    assert data["series"]["per_date_percentage"]["2024-01-04"] == 100
    assert data["series"]["per_date_percentage"]["2024-01-02"] == 0
    # 100 / 7 天
    assert data["series"]["aggregate_percentage"] == 14
    assert data["totals"] == {"completed": 1, "possible": 4, "remaining": 3}


def test_task_stats_monthly(client, auth):
    client.post("/api/tasks", json={"name": "Read", "created_date": "2024-02-01"}, headers=auth)

    data = client.get("/api/tasks/stats?range=monthly&today=2024-02-15", headers=auth).json()

    assert len(data["dates"]) == 29
    assert data["series"]["aggregate_percentage"] == 0
    assert data["totals"]["possible"] == 29


def test_habit_crud_and_stats(client, auth):
    created = client.post("/api/habits", json={"name": "Run", "emoji": "🏃", "goal": 10}, headers=auth)
    assert created.status_code == 201
    habit = created.json()["habit"]

    for day in ("2024-01-01", "2024-01-02"):
        client.post("/api/habits/completions", json={"habit_id": habit["id"], "date": day}, headers=auth)

    stats = client.get("/api/habits/stats?today=2024-01-03", headers=auth).json()["habits"]

    assert stats == [{
        "habit_id": habit["id"],
        "name": "Run",
        "goal": 10,
        "completed_days": 2,
        "goal_percentage": 20,
        "current_streak": 2,
        "highest_streak": 2,
    }]

    assert client.delete(f"/api/habits/{habit['id']}", headers=auth).status_code == 200
    assert client.get("/api/habits/completions", headers=auth).json()["completions"] == []


def test_register_rejects_malformed_email(client):
    for email in ("@", "ada", "ada@", "ada @example.com"):
        resp = client.post("/api/auth/register", json={"email": email, "password": "secret1", "name": "Ada"})
        assert resp.status_code == 422, email


def test_register_lowercases_email(client):
    created = register(client, email="  Grace.Hopper@Example.COM ")
    assert created["user"]["email"] == "grace.hopper@example.com"

    resp = client.post("/api/auth/login", json={"email": "GRACE.HOPPER@example.com", "password": "secret1"})
    assert resp.status_code == 200


def test_update_rejects_malformed_email(client, auth):
    resp = client.put("/api/auth/update", json={"email": "not-an-email"}, headers=auth)
    assert resp.status_code == 422


def test_password_longer_than_72_bytes_is_rejected(client, auth):
    too_long = client.post("/api/auth/register", json={"email": "x@example.com", "password": "x" * 100, "name": "X"})
    # 40 个字符但 80 字节
    multibyte = client.post("/api/auth/register", json={"email": "y@example.com", "password": "é" * 40, "name": "Y"})
    update = client.put("/api/auth/update", json={"password": "x" * 73}, headers=auth)

    assert too_long.status_code == 422
    assert multibyte.status_code == 422
    assert update.status_code == 422


def test_password_of_exactly_72_bytes_is_accepted(client):
    register(client, email="z@example.com", password="x" * 72)

    resp = client.post("/api/auth/login", json={"email": "z@example.com", "password": "x" * 72})
    assert resp.status_code == 200


def test_blank_names_are_rejected(client, auth):
    assert client.post("/api/subjects", json={"name": "   "}, headers=auth).status_code == 422
    assert client.post("/api/tasks", json={"name": "\t"}, headers=auth).status_code == 422
    assert client.post("/api/habits", json={"name": " "}, headers=auth).status_code == 422
    assert client.post(
        "/api/sessions", json={"subject": "  ", "minutes": 5, "date": "2024-01-01"}, headers=auth
    ).status_code == 422
    assert client.post(
        "/api/auth/register", json={"email": "w@example.com", "password": "secret1", "name": "  "}
    ).status_code == 422


def test_blank_names_are_rejected_on_update(client, auth):
    task = client.post("/api/tasks", json={"name": "Read"}, headers=auth).json()["task"]
    subject = client.post("/api/subjects", json={"name": "Math"}, headers=auth).json()["subject"]

    assert client.put(f"/api/tasks/{task['id']}", json={"name": "  "}, headers=auth).status_code == 422
    assert client.put(f"/api/subjects/{subject['id']}", json={"name": ""}, headers=auth).status_code == 422


def test_names_are_trimmed(client, auth):
    subject = client.post("/api/subjects", json={"name": "  Math "}, headers=auth).json()["subject"]
    task = client.post("/api/tasks", json={"name": "Read"}, headers=auth).json()["task"]
    renamed = client.put(f"/api/tasks/{task['id']}", json={"name": "  Write  "}, headers=auth).json()["task"]

    assert subject["name"] == "Math"
    assert renamed["name"] == "Write"


def test_session_heatmap(client, auth, user, mongo_db):
    mongo_db["users"].update_one(
        {"_id": ObjectId(user["user"]["id"])},
        {"$set": {"created_at": datetime(2023, 11, 20, 9, 30)}}
    )
    client.post("/api/sessions", json={"subject": "Math", "minutes": 25, "date": "2024-01-15"}, headers=auth)
    client.post("/api/sessions", json={"subject": "Math", "minutes": 10, "date": "2024-02-01"}, headers=auth)

    resp = client.get("/api/sessions/chart?range=heatmap&offset=-1&today=2024-02-10", headers=auth)
    data = resp.json()

    assert resp.status_code == 200
    assert len(data["data"]) == 31
    assert data["data"][0]["date"] == "2024-01-01"
    assert data["data"][14] == {"date": "2024-01-15", "day": "Mon", "minutes": 25}
    assert sum(d["minutes"] for d in data["data"]) == 25
    assert data["limits"] == {"min_month_offset": -3, "min_week_offset": -12}


def test_expired_token_is_rejected(client, user):
    expired = jwt.encode(
        {"user_id": user["user"]["id"], "exp": datetime.utcnow() - timedelta(minutes=1)},
        JWT_SECRET,
        algorithm=JWT_ALGORITHM,
    )

    resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {expired}"})

    assert resp.status_code == 401


def test_token_signed_with_other_secret_is_rejected(client, user):
    forged = jwt.encode({"user_id": user["user"]["id"]}, "another-secret", algorithm=JWT_ALGORITHM)

    resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {forged}"})

    assert resp.status_code == 401
