from fastapi.testclient import TestClient

from tests.helpers.asserts import api_call, assert_error
from tests.helpers.factories import auth_headers


def _ids(response):
    return [u["id"] for u in response.json()["data"]]


def test_follow_and_unfollow(client: TestClient, student, student_headers, make_user):
    mentor = make_user()
    response = api_call(client, "POST", f"/social/follow/{mentor.id}", headers=student_headers)
    assert response.status_code == 201

    assert _ids(api_call(client, "GET", "/social/following", headers=student_headers)) == [mentor.id]
    assert _ids(api_call(client, "GET", "/social/followers", headers=auth_headers(mentor))) == [student.id]

    profile = api_call(client, "GET", f"/users/{mentor.id}/profile").json()["data"]
    assert profile["followers_count"] == 1

    feed = api_call(client, "GET", "/notifications/", headers=auth_headers(mentor)).json()["data"]
    assert feed["notifications"][0]["title"] == "New Follower"

    api_call(client, "DELETE", f"/social/follow/{mentor.id}", headers=student_headers)
    assert _ids(api_call(client, "GET", "/social/following", headers=student_headers)) == []
    assert_error(client.delete(f"/social/follow/{mentor.id}", headers=student_headers), 404, "NOT_FOUND")


def test_follow_guards(client: TestClient, student, student_headers, make_user):
    mentor = make_user()
    assert_error(client.post(f"/social/follow/{student.id}", headers=student_headers), 400, "VALIDATION_ERROR")
    assert_error(client.post("/social/follow/999999", headers=student_headers), 404, "NOT_FOUND")

    api_call(client, "POST", f"/social/follow/{mentor.id}", headers=student_headers)
    assert_error(client.post(f"/social/follow/{mentor.id}", headers=student_headers), 409, "CONFLICT")


def test_friend_request_flow(client: TestClient, student, student_headers, make_user):
    friend = make_user()
    friend_headers = auth_headers(friend)

    request = api_call(client, "POST", f"/social/friends/requests/{friend.id}", headers=student_headers).json()["data"]
    assert request["status"] == "pending"

    profile = api_call(client, "GET", f"/users/{friend.id}/profile", headers=student_headers).json()["data"]
    assert profile["friend_status"] == "pending"
    profile = api_call(client, "GET", f"/users/{student.id}/profile", headers=friend_headers).json()["data"]
    assert profile["friend_status"] == "incoming"
    assert profile["friend_request_id"] == request["id"]

    incoming = api_call(client, "GET", "/social/friends/requests", headers=friend_headers).json()["data"]
    assert [r["id"] for r in incoming] == [request["id"]]
    assert incoming[0]["requester"]["id"] == student.id

    accepted = api_call(
        client, "POST", f"/social/friends/requests/{request['id']}/accept", headers=friend_headers
    ).json()["data"]
    assert accepted["status"] == "accepted"
    assert _ids(api_call(client, "GET", "/social/friends", headers=student_headers)) == [friend.id]
    assert _ids(api_call(client, "GET", "/social/friends", headers=friend_headers)) == [student.id]

    feed = api_call(client, "GET", "/notifications/", headers=student_headers).json()["data"]
    assert feed["notifications"][0]["title"] == "Friend Request Accepted"


def test_duplicate_and_reverse_requests_conflict(client: TestClient, student, student_headers, make_user):
    friend = make_user()
    api_call(client, "POST", f"/social/friends/requests/{friend.id}", headers=student_headers)

    error = assert_error(client.post(f"/social/friends/requests/{friend.id}", headers=student_headers), 409, "CONFLICT")
    assert error["message"] == "Friend request already sent"
    error = assert_error(
        client.post(f"/social/friends/requests/{student.id}", headers=auth_headers(friend)), 409, "CONFLICT"
    )
    assert error["message"] == "This user has already sent you a friend request"
    assert_error(client.post(f"/social/friends/requests/{student.id}", headers=student_headers), 400, "VALIDATION_ERROR")


def test_only_recipient_accepts(client: TestClient, student_headers, make_user):
    friend = make_user()
    request = api_call(client, "POST", f"/social/friends/requests/{friend.id}", headers=student_headers).json()["data"]

    assert_error(client.post(f"/social/friends/requests/{request['id']}/accept", headers=student_headers), 403, "FORBIDDEN")
    bystander = auth_headers(make_user())
    assert_error(client.delete(f"/social/friends/requests/{request['id']}", headers=bystander), 403, "FORBIDDEN")


def test_either_side_can_unfriend(client: TestClient, student_headers, make_user):
    friend = make_user()
    friend_headers = auth_headers(friend)
    request = api_call(client, "POST", f"/social/friends/requests/{friend.id}", headers=student_headers).json()["data"]
    api_call(client, "POST", f"/social/friends/requests/{request['id']}/accept", headers=friend_headers)

    api_call(client, "DELETE", f"/social/friends/requests/{request['id']}", headers=friend_headers)
    assert _ids(api_call(client, "GET", "/social/friends", headers=student_headers)) == []
    assert_error(client.delete(f"/social/friends/requests/{request['id']}", headers=student_headers), 404, "NOT_FOUND")
