from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.constants import EnrollmentStatusEnum, PackageTierEnum
from app.models.avatar import UserAvatar
from app.models.notification import Notification
from app.models.user import User
from tests.helpers.asserts import api_call, assert_error
from tests.helpers.factories import auth_headers, materials_of


def _toggle(client, enrollment_id, material_id, headers):
    return client.post(f"/enrollments/{enrollment_id}/materials/{material_id}/toggle", headers=headers)


def _complete(client, enrollment_id, material_ids, headers):
    result = None
    for material_id in material_ids:
        result = api_call(
            client, "POST", f"/enrollments/{enrollment_id}/materials/{material_id}/toggle", headers=headers
        ).json()["data"]
    return result


def test_toggle_on_then_off_restores_progress(client: TestClient, student, make_course, make_enrollment):
    course = make_course()
    enrollment = make_enrollment(student, course)
    headers = auth_headers(student)
    first = materials_of(course, "basic")[0]

    on = api_call(client, "POST", f"/enrollments/{enrollment.id}/materials/{first}/toggle", headers=headers).json()["data"]
    assert on["completed"] is True
    assert on["progress"] == 50
    assert on["completed_chapters"] == [course.chapters[0].id]

    off = api_call(client, "POST", f"/enrollments/{enrollment.id}/materials/{first}/toggle", headers=headers).json()["data"]
    assert off["completed"] is False
    assert off["progress"] == 0
    assert off["completed_chapters"] == []


def test_progress_counts_only_materials_the_package_unlocks(
    client: TestClient, student, make_user, make_course, make_enrollment
):
    course = make_course(chapters=[["basic", "premium", "premium"]])
    basic_enrollment = make_enrollment(student, course, package=PackageTierEnum.BASIC)
    basic_material = materials_of(course, "basic")[0]

    data = _complete(client, basic_enrollment.id, [basic_material], auth_headers(student))
    assert data["progress"] == 100
    assert data["status"] == "completed"

    premium_student = make_user()
    premium_enrollment = make_enrollment(premium_student, course, package=PackageTierEnum.PREMIUM)
    data = _complete(client, premium_enrollment.id, [basic_material], auth_headers(premium_student))
    assert data["progress"] == 33
    assert data["status"] == "active"


def test_finishing_course_completes_and_undo_reactivates(client: TestClient, student, make_course, make_enrollment):
    course = make_course()
    enrollment = make_enrollment(student, course)
    headers = auth_headers(student)
    basic_materials = materials_of(course, "basic")

    data = _complete(client, enrollment.id, basic_materials, headers)
    assert data["progress"] == 100
    assert data["status"] == "completed"
    assert sorted(data["completed_chapters"]) == sorted(c.id for c in course.chapters)

    data = _complete(client, enrollment.id, basic_materials[-1:], headers)
    assert data["progress"] == 50
    assert data["status"] == "active"


def test_toggle_guards(client: TestClient, student, make_user, make_course, make_enrollment):
    course = make_course()
    other_course = make_course()
    enrollment = make_enrollment(student, course)
    headers = auth_headers(student)

    assert_error(_toggle(client, 999999, materials_of(course)[0], headers), 404, "NOT_FOUND")
    assert_error(_toggle(client, enrollment.id, materials_of(other_course)[0], headers), 404, "NOT_FOUND")

    intruder = make_user()
    assert_error(_toggle(client, enrollment.id, materials_of(course)[0], auth_headers(intruder)), 403, "FORBIDDEN")


def test_chapter_reward_is_granted_once(client: TestClient, student, make_course, make_enrollment, db_session: Session):
    course = make_course(xp_reward=25)
    enrollment = make_enrollment(student, course)
    headers = auth_headers(student)
    chapter = course.chapters[0]
    _complete(client, enrollment.id, materials_of(course, "basic")[:1], headers)

    claim = api_call(
        client, "POST", f"/enrollments/{enrollment.id}/chapters/{chapter.id}/claim", headers=headers
    ).json()["data"]
    assert claim["claimed_xp"] == 25
    assert claim["new_total_xp"] == 25
    assert claim["leveled_up"] is False

    again = client.post(f"/enrollments/{enrollment.id}/chapters/{chapter.id}/claim", headers=headers)
    assert_error(again, 400, "ALREADY_CLAIMED")

    assert db_session.get(User, student.id).xp_points == 25
    status = api_call(client, "GET", f"/courses/{course.id}/enrollment", headers=headers).json()["data"]
    assert status["enrollment"]["claimed_chapter_ids"] == [chapter.id]


def test_chapter_reward_requires_completed_chapter(client: TestClient, student, make_course, make_enrollment):
    course = make_course()
    enrollment = make_enrollment(student, course)
    headers = auth_headers(student)

    response = client.post(f"/enrollments/{enrollment.id}/chapters/{course.chapters[1].id}/claim", headers=headers)
    assert_error(response, 400, "NOT_COMPLETED")

    other_course = make_course()
    response = client.post(
        f"/enrollments/{enrollment.id}/chapters/{other_course.chapters[0].id}/claim", headers=headers
    )
    assert_error(response, 404, "NOT_FOUND")


def test_chapter_claims_drive_level_ups(client: TestClient, make_user, make_course, make_enrollment, db_session: Session):
    student = make_user(xp_points=490)
    course = make_course(xp_reward=20)
    enrollment = make_enrollment(student, course)
    headers = auth_headers(student)
    _complete(client, enrollment.id, materials_of(course, "basic")[:1], headers)

    claim = api_call(
        client, "POST", f"/enrollments/{enrollment.id}/chapters/{course.chapters[0].id}/claim", headers=headers
    ).json()["data"]
    assert claim["new_total_xp"] == 510
    assert claim["new_level"] == 2
    assert claim["leveled_up"] is True
    assert claim["tokens_earned"] == 1
    assert claim["new_tokens"] == 1

    titles = [n.title for n in db_session.query(Notification).filter(Notification.user_id == student.id)]
    assert "Level Up!" in titles


def test_course_reward_requires_full_progress(client: TestClient, student, make_course, make_enrollment):
    course = make_course()
    enrollment = make_enrollment(student, course)

    response = client.post(f"/enrollments/{enrollment.id}/claim-rewards", headers=auth_headers(student))
    assert_error(response, 400, "NOT_COMPLETED")


def test_course_reward_grants_xp_and_avatar_once(
    client: TestClient, student, make_course, make_enrollment, make_avatar, db_session: Session
):
    avatar = make_avatar()
    course = make_course(completion_xp_bonus=500, reward_avatar_id=avatar.id)
    enrollment = make_enrollment(student, course)
    headers = auth_headers(student)
    _complete(client, enrollment.id, materials_of(course, "basic"), headers)

    data = api_call(client, "POST", f"/enrollments/{enrollment.id}/claim-rewards", headers=headers).json()["data"]
    assert data["claimed_xp"] == 500
    assert data["new_level"] == 2
    assert data["leveled_up"] is True
    assert data["reward_avatar"]["id"] == avatar.id

    again = client.post(f"/enrollments/{enrollment.id}/claim-rewards", headers=headers)
    assert_error(again, 400, "ALREADY_CLAIMED")

    user = db_session.get(User, student.id)
    assert user.xp_points == 500
    owned = db_session.query(UserAvatar).filter(UserAvatar.user_id == student.id).count()
    assert owned == 1

    titles = [n.title for n in db_session.query(Notification).filter(Notification.user_id == student.id)]
    assert "Course Completed!" in titles
    assert "Level Up!" in titles


def test_course_reward_does_not_duplicate_owned_avatar(
    client: TestClient, student, make_course, make_enrollment, make_avatar, db_session: Session
):
    avatar = make_avatar()
    db_session.add(UserAvatar(user_id=student.id, avatar_id=avatar.id))
    db_session.commit()
    course = make_course(reward_avatar_id=avatar.id)
    enrollment = make_enrollment(student, course)
    headers = auth_headers(student)
    _complete(client, enrollment.id, materials_of(course, "basic"), headers)

    api_call(client, "POST", f"/enrollments/{enrollment.id}/claim-rewards", headers=headers)

    owned = db_session.query(UserAvatar).filter(UserAvatar.user_id == student.id).count()
    assert owned == 1
