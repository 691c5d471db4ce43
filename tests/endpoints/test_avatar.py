from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.constants import AvatarTypeEnum, UnlockConditionEnum
from app.models.avatar import UserAvatar
from app.models.user import User
from tests.helpers.asserts import api_call, assert_error
from tests.helpers.factories import auth_headers


def _gallery(client, headers):
    return {a["id"]: a for a in api_call(client, "GET", "/avatars/", headers=headers).json()["data"]}


def test_gallery_marks_defaults_unlocked(client: TestClient, student_headers, make_avatar):
    default = make_avatar(type=AvatarTypeEnum.DEFAULT)
    premium = make_avatar()
    retired = make_avatar(is_active=False)

    gallery = _gallery(client, student_headers)
    assert gallery[default.id]["is_unlocked"] is True
    assert gallery[premium.id]["is_unlocked"] is False
    assert retired.id not in gallery


def test_gallery_names_the_course_that_rewards_an_avatar(client: TestClient, student_headers, make_avatar, make_course):
    trophy = make_avatar(type=AvatarTypeEnum.REWARD, unlock_condition=UnlockConditionEnum.COURSE_COMPLETION)
    course = make_course(reward_avatar_id=trophy.id)

    gallery = _gallery(client, student_headers)
    assert gallery[trophy.id]["required_course_title"] == course.title


def test_unlock_spends_a_token(client: TestClient, make_user, make_avatar, db_session: Session):
    user = make_user(avatar_unlock_tokens=1)
    headers = auth_headers(user)
    first, second = make_avatar(), make_avatar()

    result = api_call(client, "POST", f"/avatars/{first.id}/unlock", headers=headers).json()["data"]
    assert result == {"avatar_id": first.id, "avatar_unlock_tokens": 0}
    assert _gallery(client, headers)[first.id]["is_unlocked"] is True

    error = assert_error(client.post(f"/avatars/{second.id}/unlock", headers=headers), 400, "PRECONDITION_FAILED")
    assert error["message"] == "No avatar unlock tokens left"
    assert_error(client.post(f"/avatars/{first.id}/unlock", headers=headers), 409, "CONFLICT")
    assert db_session.get(User, user.id).avatar_unlock_tokens == 0


def test_course_reward_avatars_cannot_be_bought(client: TestClient, make_user, make_avatar, make_course):
    user = make_user(avatar_unlock_tokens=3)
    trophy = make_avatar(type=AvatarTypeEnum.REWARD)
    make_course(reward_avatar_id=trophy.id)

    response = client.post(f"/avatars/{trophy.id}/unlock", headers=auth_headers(user))
    assert_error(response, 400, "PRECONDITION_FAILED")


def test_equip_requires_ownership(client: TestClient, student, make_avatar, db_session: Session):
    headers = auth_headers(student)
    locked = make_avatar()
    assert_error(client.post(f"/avatars/{locked.id}/equip", headers=headers), 403, "FORBIDDEN")

    db_session.add(UserAvatar(user_id=student.id, avatar_id=locked.id))
    db_session.commit()
    profile = api_call(client, "POST", f"/avatars/{locked.id}/equip", headers=headers).json()["data"]
    assert profile["current_avatar_url"] == locked.image_url

    default = make_avatar(type=AvatarTypeEnum.DEFAULT)
    profile = api_call(client, "POST", f"/avatars/{default.id}/equip", headers=headers).json()["data"]
    assert profile["current_avatar_url"] == default.image_url


def test_admin_manages_avatars(client: TestClient, admin_headers, student_headers):
    created = api_call(
        client, "POST", "/avatars/", headers=admin_headers,
        json={"name": "Bull", "image_url": "https://img.test/bull.png", "type": "premium"}
    ).json()["data"]
    assert created["type"] == "premium"

    updated = api_call(
        client, "PUT", f"/avatars/{created['id']}", headers=admin_headers, json={"name": "Golden Bull"}
    ).json()["data"]
    assert updated["name"] == "Golden Bull"

    listed = api_call(client, "GET", "/avatars/all", headers=admin_headers).json()["data"]
    assert created["id"] in [a["id"] for a in listed]
    assert_error(client.get("/avatars/all", headers=student_headers), 403, "FORBIDDEN")

    api_call(client, "DELETE", f"/avatars/{created['id']}", headers=admin_headers)
    assert_error(client.delete(f"/avatars/{created['id']}", headers=admin_headers), 404, "NOT_FOUND")
