from datetime import timedelta

from genshin_quiz.utils.lifecycle import utcnow


def create_vote(client, headers, **overrides):
    payload = {
        "title": "Pick one",
        "start_time": (utcnow() - timedelta(hours=1)).isoformat(),
        "max_choices": 1,
        "options": [{"title": "X"}, {"title": "Y"}],
    }
    payload.update(overrides)
    response = client.post("/api/v1/votes/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestAuth:
    def test_login_touches_last_login(self, client, db, users, member):
        response = client.post(
            "/api/v1/auth/login", json={"email": "lumine@teyvat.com", "password": "secret123"}
        )

        assert response.status_code == 200
        assert response.json()["token_type"] == "bearer"
        db.expire_all()
        assert users.get_by_email("lumine@teyvat.com").last_login_at is not None

    def test_wrong_password(self, client, member):
        response = client.post(
            "/api/v1/auth/login", json={"email": "lumine@teyvat.com", "password": "wrong-pass"}
        )
        assert response.status_code == 401

    def test_register_and_duplicate(self, client):
        payload = {"name": "Kaeya", "email": "kaeya@mond.com", "password": "cavalry"}

        created = client.post("/api/v1/users/", json=payload)
        assert created.status_code == 201
        assert "password" not in created.json()

        duplicate = client.post("/api/v1/users/", json=payload)
        assert duplicate.status_code == 400
        assert duplicate.json()["detail"] == "Email already registered"

    def test_missing_token(self, client):
        response = client.post("/api/v1/votes/1/submit", json={"option_ids": [1]})
        assert response.status_code == 401


class TestQuizRoutes:
    def test_admin_only_create(self, client, member, auth_headers):
        response = client.post(
            "/api/v1/quizzes/",
            json={"question": "Q", "answer": "A", "options": ["A"]},
            headers=auth_headers(member["id"]),
        )
        assert response.status_code == 403

    def test_choice_quiz_requires_options(self, client, admin, auth_headers):
        response = client.post(
            "/api/v1/quizzes/",
            json={"question": "Q", "answer": "A", "type": "single_choice"},
            headers=auth_headers(admin["id"]),
        )
        assert response.status_code == 422

    def test_create_attempt_and_stats(self, client, admin, member, auth_headers):
        created = client.post(
            "/api/v1/quizzes/",
            json={
                "question": "What is the name of the main currency?",
                "answer": "Mora",
                "options": ["Mora", "Primogem"],
                "category": "Currency",
            },
            headers=auth_headers(admin["id"]),
        )
        assert created.status_code == 201
        quiz_id = created.json()["id"]
        assert created.json()["options"] == ["Mora", "Primogem"]

        attempt = client.post(
            f"/api/v1/quizzes/{quiz_id}/attempts",
            json={"answer": "mora", "time_spent": 12},
            headers=auth_headers(member["id"]),
        )
        assert attempt.status_code == 201
        assert attempt.json()["is_correct"] is True

        stats = client.get(f"/api/v1/quizzes/{quiz_id}/stats").json()
        assert stats == {
            "total_attempts": 1,
            "correct_attempts": 1,
            "accuracy": "100.00",
            "avg_time_spent": 12,
        }

        assert client.get("/api/v1/quizzes/random", params={"category": "Currency"}).json()["id"] == quiz_id
        assert client.get("/api/v1/quizzes/", params={"category": "Lore"}).json() == []

    def test_retired_quiz_is_not_found(self, client, admin, auth_headers, quizzes):
        quiz = quizzes.create({"question": "Q", "answer": "A", "type": "text"})

        deleted = client.delete(f"/api/v1/quizzes/{quiz['id']}", headers=auth_headers(admin["id"]))
        assert deleted.status_code == 200
        assert client.get(f"/api/v1/quizzes/{quiz['id']}").status_code == 404


class TestVoteRoutes:
    def test_submit_and_results(self, client, admin, member, auth_headers):
        vote = create_vote(client, auth_headers(admin["id"]))
        x = vote["options"][0]["id"]
        headers = auth_headers(member["id"])

        submitted = client.post(f"/api/v1/votes/{vote['id']}/submit", json={"option_ids": [x]},
                                headers=headers)
        assert submitted.status_code == 200

        again = client.post(f"/api/v1/votes/{vote['id']}/submit", json={"option_ids": [x]},
                            headers=headers)
        assert again.status_code == 409

        results = client.get(f"/api/v1/votes/{vote['id']}/results").json()
        assert results["total_votes"] == 1
        assert [r["percentage"] for r in results["results"]] == ["100.00", "0.00"]

        voted = client.get(f"/api/v1/votes/{vote['id']}/voted", headers=headers).json()
        assert voted == {"vote_id": vote["id"], "has_voted": True}

    def test_too_many_choices(self, client, admin, member, auth_headers):
        vote = create_vote(client, auth_headers(admin["id"]))
        ids = [option["id"] for option in vote["options"]]

        response = client.post(f"/api/v1/votes/{vote['id']}/submit", json={"option_ids": ids},
                               headers=auth_headers(member["id"]))
        assert response.status_code == 422
        assert response.json()["detail"].startswith("Too many choices selected")

    def test_ended_vote(self, client, admin, member, auth_headers):
        vote = create_vote(
            client,
            auth_headers(admin["id"]),
            start_time=(utcnow() - timedelta(days=2)).isoformat(),
            end_time=(utcnow() - timedelta(days=1)).isoformat(),
        )

        response = client.post(
            f"/api/v1/votes/{vote['id']}/submit",
            json={"option_ids": [vote["options"][0]["id"]]},
            headers=auth_headers(member["id"]),
        )
        assert response.status_code == 410
        assert vote["status"] == "closed"

    def test_backwards_window_rejected(self, client, admin, auth_headers):
        start = utcnow()
        response = client.post(
            "/api/v1/votes/",
            json={
                "title": "Backwards",
                "start_time": start.isoformat(),
                "end_time": (start - timedelta(hours=1)).isoformat(),
                "options": [{"title": "A"}],
            },
            headers=auth_headers(admin["id"]),
        )
        assert response.status_code == 422

    def test_missing_vote(self, client):
        assert client.get("/api/v1/votes/404").status_code == 404
        assert client.get("/api/v1/votes/404/results").status_code == 404

    def test_vote_history_is_private(self, client, admin, member, auth_headers):
        admin_headers = auth_headers(admin["id"])
        member_headers = auth_headers(member["id"])
        public = create_vote(client, admin_headers)
        secret = create_vote(client, admin_headers, title="Secret", is_anonymous=True)
        for vote in (public, secret):
            client.post(
                f"/api/v1/votes/{vote['id']}/submit",
                json={"option_ids": [vote["options"][1]["id"]]},
                headers=member_headers,
            )
        url = f"/api/v1/users/{member['id']}/votes"

        assert client.get(url).status_code == 401

        own = client.get(url, headers=member_headers).json()
        assert sorted(h["vote_title"] for h in own) == ["Pick one", "Secret"]

        seen_by_admin = client.get(url, headers=admin_headers).json()
        assert [(h["vote_title"], h["option_title"]) for h in seen_by_admin] == [("Pick one", "Y")]

        other = client.get(f"/api/v1/users/{admin['id']}/votes", headers=member_headers)
        assert other.status_code == 403


class TestQuizUpdate:
    def test_switching_to_text_requires_clearing_options(self, client, admin, auth_headers, quizzes):
        quiz = quizzes.create({"question": "Pick", "answer": "A", "options": ["A", "B"]})
        url = f"/api/v1/quizzes/{quiz['id']}"
        headers = auth_headers(admin["id"])

        assert client.put(url, json={"type": "text"}, headers=headers).status_code == 422

        cleared = client.put(url, json={"type": "text", "options": None}, headers=headers)
        assert cleared.status_code == 200
        assert cleared.json()["options"] is None

    def test_choice_quiz_keeps_its_options(self, client, admin, auth_headers, quizzes):
        quiz = quizzes.create({"question": "Pick", "answer": "A", "options": ["A", "B"]})

        response = client.put(
            f"/api/v1/quizzes/{quiz['id']}", json={"options": []}, headers=auth_headers(admin["id"])
        )
        assert response.status_code == 422
        assert quizzes.get_by_id(quiz["id"])["options"] == ["A", "B"]

    def test_list_is_paged(self, client, quizzes):
        for n in range(12):
            quizzes.create({"question": f"Q{n}", "answer": "a", "type": "text"})

        assert len(client.get("/api/v1/quizzes/").json()) == 10
        assert len(client.get("/api/v1/quizzes/", params={"offset": 10}).json()) == 2
        assert client.get("/api/v1/quizzes/", params={"limit": 101}).status_code == 422


class TestCurrentUser:
    def test_me(self, client, member, auth_headers):
        response = client.get("/api/v1/users/me", headers=auth_headers(member["id"]))
        assert response.status_code == 200
        assert response.json()["email"] == "lumine@teyvat.com"
        assert client.get("/api/v1/users/me").status_code == 401

    def test_update_me(self, client, member, auth_headers):
        headers = auth_headers(member["id"])

        renamed = client.put("/api/v1/users/me", json={"name": "Lumine of Teyvat"}, headers=headers)
        assert renamed.status_code == 200
        assert renamed.json()["name"] == "Lumine of Teyvat"

        promoted = client.put("/api/v1/users/me", json={"role": "admin"}, headers=headers)
        assert promoted.status_code == 403

    def test_admin_lists_and_searches_users(self, client, admin, member, auth_headers):
        headers = auth_headers(admin["id"])

        everyone = client.get("/api/v1/users/", headers=headers).json()
        assert {u["email"] for u in everyone} == {"zhongli@liyue.com", "lumine@teyvat.com"}

        found = client.get("/api/v1/users/", params={"search": "lumine"}, headers=headers).json()
        assert [u["id"] for u in found] == [member["id"]]

        page = client.get("/api/v1/users/", params={"limit": 1, "offset": 1}, headers=headers).json()
        assert len(page) == 1

        assert client.get("/api/v1/users/", headers=auth_headers(member["id"])).status_code == 403
