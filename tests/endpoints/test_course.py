from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.constants import CourseStatusEnum, EnrollmentStatusEnum
from app.core.exceptions import ConflictError
from app.models.chapter import Chapter, Material
from app.models.course_enrollment import CourseEnrollment
from app.services.course_progress import course_progress_service
from tests.helpers.asserts import api_call, assert_error
from tests.helpers.factories import auth_headers, materials_of


COURSE_PAYLOAD = {
    "title": "Options Trading 101",
    "description": "From calls and puts to spreads",
    "level": "beginner",
    "completion_xp_bonus": 150,
    "packages": [
        {"tier": "basic", "price": "0", "features": ["Core videos"]},
        {"tier": "premium", "price": "49.99", "features": ["Core videos", "Live sessions"]},
    ],
}


def test_admin_creates_course_with_packages(client: TestClient, admin_headers):
    response = api_call(client, "POST", "/courses/", headers=admin_headers, json=COURSE_PAYLOAD)
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["title"] == COURSE_PAYLOAD["title"]
    assert data["enrolled_students"] == 0
    assert sorted(p["tier"] for p in data["packages"]) == ["basic", "premium"]
    assert data["chapters"] == []


def test_students_cannot_manage_courses(client: TestClient, student_headers, make_course):
    assert_error(client.post("/courses/", headers=student_headers, json=COURSE_PAYLOAD), 403, "FORBIDDEN")
    course = make_course()
    assert_error(client.delete(f"/courses/{course.id}", headers=student_headers), 403, "FORBIDDEN")


def test_duplicate_package_tiers_are_rejected(client: TestClient, admin_headers):
    payload = {**COURSE_PAYLOAD, "packages": [{"tier": "basic", "price": "0"}, {"tier": "basic", "price": "5"}]}
    assert_error(client.post("/courses/", headers=admin_headers, json=payload), 422, "VALIDATION_ERROR")


def test_update_course_replaces_packages(client: TestClient, admin_headers, make_course):
    course = make_course()
    response = api_call(
        client, "PUT", f"/courses/{course.id}", headers=admin_headers,
        json={"title": "Renamed", "packages": [{"tier": "advanced", "price": "20"}]}
    )
    data = response.json()["data"]
    assert data["title"] == "Renamed"
    assert [p["tier"] for p in data["packages"]] == ["advanced"]


def test_disabled_courses_are_hidden_from_students(client: TestClient, student_headers, admin_headers, make_course):
    visible = make_course()
    hidden = make_course(status=CourseStatusEnum.DISABLED)

    listed = [c["id"] for c in api_call(client, "GET", "/courses/", headers=student_headers).json()["data"]]
    assert visible.id in listed
    assert hidden.id not in listed
    assert_error(client.get(f"/courses/{hidden.id}", headers=student_headers), 404, "NOT_FOUND")

    listed = [c["id"] for c in api_call(client, "GET", "/courses/", headers=admin_headers).json()["data"]]
    assert hidden.id in listed


def test_course_outline_hides_locked_material_links(client: TestClient, admin_headers, make_course):
    course = make_course()

    public = api_call(client, "GET", f"/courses/{course.id}").json()["data"]
    assert public["total_chapters"] == 2
    assert all(m["url"] is None for chapter in public["chapters"] for m in chapter["materials"])

    full = api_call(client, "GET", f"/courses/{course.id}", headers=admin_headers).json()["data"]
    assert all(m["url"] for chapter in full["chapters"] for m in chapter["materials"])


def test_course_with_enrollments_cannot_be_deleted(
    client: TestClient, admin_headers, student, make_course, make_enrollment
):
    course = make_course()
    make_enrollment(student, course)
    assert_error(client.delete(f"/courses/{course.id}", headers=admin_headers), 409, "CONFLICT")

    empty = make_course()
    api_call(client, "DELETE", f"/courses/{empty.id}", headers=admin_headers)
    assert_error(client.get(f"/courses/{empty.id}"), 404, "NOT_FOUND")


def test_new_material_recomputes_progress(
    client: TestClient, admin_headers, student, make_course, make_enrollment, db_session: Session
):
    course = make_course(chapters=[["basic"]])
    enrollment = make_enrollment(student, course)
    api_call(
        client, "POST", f"/enrollments/{enrollment.id}/materials/{materials_of(course)[0]}/toggle",
        headers=auth_headers(student)
    )
    db_session.refresh(enrollment)
    assert enrollment.status == EnrollmentStatusEnum.COMPLETED

    chapter_id = course.chapters[0].id
    api_call(
        client, "POST", f"/courses/{course.id}/chapters/{chapter_id}/materials", headers=admin_headers,
        json={"title": "Bonus lesson", "type": "video", "min_package_tier": "basic", "position": 1}
    )

    enrollment = db_session.get(CourseEnrollment, enrollment.id)
    assert enrollment.progress == 50
    assert enrollment.status == EnrollmentStatusEnum.ACTIVE


def test_deleting_material_recomputes_progress_and_removes_file(
    client: TestClient, admin_headers, student, make_course, make_enrollment, db_session: Session, fake_storage
):
    course = make_course(chapters=[["basic", "basic"]])
    enrollment = make_enrollment(student, course)
    first, second = materials_of(course)
    chapter_id = course.chapters[0].id
    material_url = course.chapters[0].materials[1].url
    api_call(client, "POST", f"/enrollments/{enrollment.id}/materials/{first}/toggle", headers=auth_headers(student))

    api_call(client, "DELETE", f"/courses/{course.id}/chapters/{chapter_id}/materials/{second}", headers=admin_headers)

    enrollment = db_session.get(CourseEnrollment, enrollment.id)
    assert enrollment.progress == 100
    assert enrollment.status == EnrollmentStatusEnum.COMPLETED
    assert material_url in fake_storage.deletes


def test_material_file_upload_replaces_old_file(client: TestClient, admin_headers, make_course, fake_storage):
    course = make_course(chapters=[["basic"]])
    chapter = course.chapters[0]
    material = chapter.materials[0]
    old_url = material.url

    response = api_call(
        client, "POST", f"/courses/{course.id}/chapters/{chapter.id}/materials/{material.id}/file",
        headers=admin_headers, files={"file": ("slides.pdf", b"%PDF-1.4", "application/pdf")}
    )
    assert response.json()["data"]["url"] == fake_storage.uploads[-1]
    assert f"materials/{course.id}" in fake_storage.uploads[-1]
    assert old_url in fake_storage.deletes


def test_failed_chapter_delete_keeps_files_and_rows(
    client: TestClient, admin_headers, make_course, fake_storage, db_session: Session, monkeypatch
):
    course = make_course(chapters=[["basic", "premium"]])
    chapter_id = course.chapters[0].id
    material_ids = materials_of(course)

    def fail_recalculation(*args, **kwargs):
        raise ConflictError("Recalculation failed")

    monkeypatch.setattr(course_progress_service, "recalculate_course_enrollments", fail_recalculation)
    response = client.delete(f"/courses/{course.id}/chapters/{chapter_id}", headers=admin_headers)

    assert_error(response, 409, "CONFLICT")
    assert fake_storage.deletes == []
    assert db_session.get(Chapter, chapter_id) is not None
    assert all(db_session.get(Material, material_id).url for material_id in material_ids)


def test_chapter_crud(client: TestClient, admin_headers, make_course):
    course = make_course(chapters=[])

    created = api_call(
        client, "POST", f"/courses/{course.id}/chapters", headers=admin_headers,
        json={"title": "Intro", "position": 0, "xp_reward": 30}
    ).json()["data"]
    assert created["course_id"] == course.id
    assert created["xp_reward"] == 30

    updated = api_call(
        client, "PUT", f"/courses/{course.id}/chapters/{created['id']}", headers=admin_headers,
        json={"title": "Introduction", "is_free": True}
    ).json()["data"]
    assert updated["title"] == "Introduction"
    assert updated["is_free"] is True

    api_call(client, "DELETE", f"/courses/{course.id}/chapters/{created['id']}", headers=admin_headers)
    assert_error(
        client.put(f"/courses/{course.id}/chapters/{created['id']}", headers=admin_headers, json={"title": "x"}),
        404, "NOT_FOUND"
    )
