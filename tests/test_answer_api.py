"""HTTP tests for the answers and cabinet routes."""

from datetime import timedelta

import pytest
from bson import ObjectId

from conftest import auth_headers, make_token
from quiz_api.services import directories


@pytest.mark.asyncio
async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["data"] == {"status": "ok"}


@pytest.mark.asyncio
async def test_create_answers(client, db, user, questions):
    body = {
        "userId": str(user["_id"]),
        "answers": [{"questionId": str(questions["q1"]["_id"]), "userAnswers": ["Paris"]}],
    }
    r = await client.post("/answers/create", json=body, headers=auth_headers(user["_id"]))

    assert r.status_code == 201
    payload = r.json()
    assert payload["status"] == "ok"
    assert payload["message"] == "Answers successfully saved"
    assert payload["data"] == {"total": 1, "correctAnswers": 1, "totalCoins": 10}
    assert await db.answers.count_documents({}) == 1


@pytest.mark.asyncio
async def test_create_answers_unknown_question(client, db, user):
    body = {
        "userId": str(user["_id"]),
        "answers": [{"questionId": str(ObjectId()), "userAnswers": ["Paris"]}],
    }
    r = await client.post("/answers/create", json=body, headers=auth_headers(user["_id"]))

    assert r.status_code == 400
    payload = r.json()
    assert payload["status"] == "error"
    assert payload["error_code"] == "INVALID_INPUT"
    assert payload["message"] == "One or more questions not found"
    assert await db.answers.count_documents({}) == 0


@pytest.mark.asyncio
async def test_create_answers_schema_validation(client, user):
    body = {"userId": str(user["_id"]), "answers": [{"questionId": str(ObjectId()), "userAnswers": []}]}
    r = await client.post("/answers/create", json=body, headers=auth_headers(user["_id"]))

    assert r.status_code == 422
    assert r.json()["error_code"] == "INVALID_INPUT"
    assert "userAnswers cannot be empty" in r.json()["message"]


@pytest.mark.asyncio
async def test_create_answers_requires_token(client, user):
    r = await client.post("/answers/create", json={"userId": str(user["_id"]), "answers": []})

    assert r.status_code == 401
    assert r.json()["message"] == "Authorization header missing"
    assert r.json()["error_code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_expired_token(client, user):
    token = make_token(user["_id"], expires_in=timedelta(seconds=-10))
    r = await client.get(f"/answers/history/{user['_id']}", headers={"Authorization": f"Bearer {token}"})

    assert r.status_code == 401
    assert r.json()["message"] == "Token has expired"


@pytest.mark.asyncio
async def test_create_answers_for_another_user_forbidden(client, user, questions):
    body = {
        "userId": str(user["_id"]),
        "answers": [{"questionId": str(questions["q1"]["_id"]), "userAnswers": ["Paris"]}],
    }
    r = await client.post("/answers/create", json=body, headers=auth_headers(ObjectId()))

    assert r.status_code == 403
    assert r.json()["error_code"] == "FORBIDDEN"


@pytest.mark.asyncio
async def test_admin_can_submit_for_user(client, user, questions):
    body = {
        "userId": str(user["_id"]),
        "answers": [{"questionId": str(questions["q2"]["_id"]), "userAnswers": ["cat"]}],
    }
    r = await client.post("/answers/create", json=body, headers=auth_headers(ObjectId(), roles=["admin"]))

    assert r.status_code == 201
    assert r.json()["data"]["totalCoins"] == 5


@pytest.mark.asyncio
async def test_delete_multiple_requires_admin(client, db):
    inserted = await db.answers.insert_one({"quizId": "AAAA1111"})

    r = await client.request(
        "DELETE", "/answers/delete-multiple",
        json={"ids": [str(inserted.inserted_id)]},
        headers=auth_headers(ObjectId())
    )
    assert r.status_code == 403

    r = await client.request(
        "DELETE", "/answers/delete-multiple",
        json={"ids": [str(inserted.inserted_id)]},
        headers=auth_headers(ObjectId(), roles=["admin"])
    )
    assert r.status_code == 200
    assert r.json()["data"] == {"deletedCount": 1}
    assert r.json()["message"] == "1 answer document(s) deleted successfully"


@pytest.mark.asyncio
async def test_delete_multiple_errors(client):
    headers = auth_headers(ObjectId(), roles=["admin"])

    r = await client.request("DELETE", "/answers/delete-multiple", json={"ids": ["bad-id"]}, headers=headers)
    assert r.status_code == 400
    assert r.json()["message"] == "No valid IDs provided"

    r = await client.request("DELETE", "/answers/delete-multiple", json={"ids": [str(ObjectId())]}, headers=headers)
    assert r.status_code == 404
    assert r.json()["error_code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_history_and_check(client, user, questions):
    headers = auth_headers(user["_id"])
    body = {
        "userId": str(user["_id"]),
        "answers": [{"questionId": str(questions["q1"]["_id"]), "userAnswers": ["Paris"]}],
    }
    await client.post("/answers/create", json=body, headers=headers)

    r = await client.get(f"/answers/history/{user['_id']}", headers=headers)
    assert r.status_code == 200
    history = r.json()["data"]
    assert history["correct"] == 1
    assert history["earnedCoins"] == 10
    assert history["answers"][0]["questions"][0]["userAnswers"] == ["Paris"]

    r = await client.get(f"/answers/check/{user['_id']}/{questions['q1']['_id']}", headers=headers)
    assert r.json()["data"] == {"answered": True}

    r = await client.get(f"/answers/check/{user['_id']}/{questions['q2']['_id']}", headers=headers)
    assert r.json()["data"] == {"answered": False}


@pytest.mark.asyncio
async def test_history_of_another_user_forbidden(client, user):
    r = await client.get(f"/answers/history/{user['_id']}", headers=auth_headers(ObjectId()))
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_cabinet_route(client, user):
    r = await client.get(f"/cabinet/{user['_id']}", headers=auth_headers(ObjectId()))

    assert r.status_code == 200
    assert r.json()["data"]["user"]["username"] == "ivan"

    r = await client.get(f"/cabinet/{ObjectId()}", headers=auth_headers(ObjectId()))
    assert r.status_code == 404
    assert r.json()["message"] == "User not found"


@pytest.mark.asyncio
async def test_history_and_cabinet_serialize_nested_ids(client, user, questions):
    headers = auth_headers(user["_id"])
    body = {
        "userId": str(user["_id"]),
        "answers": [
            {"questionId": str(questions["q1"]["_id"]), "userAnswers": ["Paris"]},
            {"questionId": str(questions["q2"]["_id"]), "userAnswers": ["cat"]},
        ],
    }
    await client.post("/answers/create", json=body, headers=headers)

    r = await client.get(f"/answers/history/{user['_id']}", headers=headers)
    assert r.status_code == 200
    entries = r.json()["data"]["answers"][0]["questions"]
    assert entries[0]["options"][0] == {
        "_id": str(questions["q1"]["options"][0]["_id"]),
        "text": "Paris",
        "isCorrect": True,
    }
    assert entries[1]["blanks"][0]["_id"] == str(questions["q2"]["blanks"][0]["_id"])

    r = await client.get(f"/cabinet/{user['_id']}", headers=headers)
    assert r.status_code == 200
    assert r.json()["data"]["answers"][0]["questions"][0]["options"][1]["text"] == "Lyon"


@pytest.mark.asyncio
async def test_history_storage_failure_returns_internal_error(client, user, monkeypatch):
    async def broken_lookup(*args, **kwargs):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(directories, "find_questions_by_ids", broken_lookup)

    r = await client.get(f"/answers/history/{user['_id']}", headers=auth_headers(user["_id"]))

    assert r.status_code == 500
    assert r.json()["error_code"] == "INTERNAL_ERROR"
    assert r.json()["message"] == "Failed to fetch answers with questions"


@pytest.mark.asyncio
async def test_own_id_in_uppercase_is_not_forbidden(client, user, questions):
    body = {
        "userId": str(user["_id"]).upper(),
        "answers": [{"questionId": str(questions["q1"]["_id"]), "userAnswers": ["Paris"]}],
    }
    r = await client.post("/answers/create", json=body, headers=auth_headers(user["_id"]))

    assert r.status_code == 201
    assert r.json()["data"]["correctAnswers"] == 1
