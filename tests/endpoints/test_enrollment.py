from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.constants import FREE_ENROLLMENT_RECEIPT, EnrollmentStatusEnum, PackageTierEnum
from app.core.exceptions import ConflictError
from app.crud.course import course as crud_course
from app.models.course_enrollment import CourseEnrollment
from app.models.notification import Notification
from app.utils.events import event_bus
from tests.helpers.asserts import api_call, assert_error
from tests.helpers.factories import auth_headers


RECEIPT = {"receipt": ("receipt.png", b"\x89PNG fake receipt", "image/png")}


def _enroll(client, course_id, headers, package="basic", promo_code=None, files=None):
    data = {"package": package}
    if promo_code is not None:
        data["promo_code"] = promo_code
    return client.post(f"/courses/{course_id}/enroll", headers=headers, data=data, files=files)


def test_enroll_requires_authentication(client: TestClient, make_course):
    course = make_course()
    response = _enroll(client, course.id, headers={})
    assert_error(response, 401, "UNAUTHORIZED")


def test_free_package_enrollment_is_active_immediately(client: TestClient, student_headers, make_course):
    course = make_course()

    response = _enroll(client, course.id, student_headers)
    assert response.status_code == 201, response.json()
    data = response.json()["data"]
    assert data["status"] == "active"
    assert data["receipt_url"] == FREE_ENROLLMENT_RECEIPT
    assert Decimal(data["amount_paid"]) == Decimal("0")
    assert data["progress"] == 0

    course_data = api_call(client, "GET", f"/courses/{course.id}").json()["data"]
    assert course_data["enrolled_students"] == 1


def test_paid_enrollment_requires_receipt(client: TestClient, student_headers, make_course, fake_storage):
    course = make_course()

    response = _enroll(client, course.id, student_headers, package="premium")
    assert_error(response, 400, "RECEIPT_REQUIRED")
    assert fake_storage.uploads == []


def test_paid_enrollment_is_pending_until_reviewed(client: TestClient, student_headers, make_course, fake_storage):
    course = make_course()

    response = _enroll(client, course.id, student_headers, package="premium", files=RECEIPT)
    assert response.status_code == 201, response.json()
    data = response.json()["data"]
    assert data["status"] == "pending"
    assert Decimal(data["amount_paid"]) == Decimal("100")
    assert data["receipt_url"] == fake_storage.uploads[0]
    assert f"receipts/{course.id}" in data["receipt_url"]

    course_data = api_call(client, "GET", f"/courses/{course.id}").json()["data"]
    assert course_data["enrolled_students"] == 0


def test_unknown_course_and_package(client: TestClient, student_headers, make_course):
    assert_error(_enroll(client, 999999, student_headers), 404, "NOT_FOUND")

    course = make_course(packages={"basic": "0"})
    assert_error(_enroll(client, course.id, student_headers, package="gold"), 400, "INVALID_PACKAGE")
    assert_error(_enroll(client, course.id, student_headers, package="premium"), 400, "INVALID_PACKAGE")


def test_cannot_enroll_twice_in_same_active_package(client: TestClient, student_headers, make_course):
    course = make_course()
    api_call(client, "POST", f"/courses/{course.id}/enroll", headers=student_headers, data={"package": "basic"})

    response = _enroll(client, course.id, student_headers)
    assert_error(response, 400, "ALREADY_ENROLLED")


def test_upgrade_from_active_basic_resubmits_for_review(
    client: TestClient, student_headers, make_course, db_session: Session, fake_storage
):
    course = make_course()
    first = _enroll(client, course.id, student_headers).json()["data"]

    response = _enroll(client, course.id, student_headers, package="premium", files=RECEIPT)
    assert response.status_code == 200, response.json()
    data = response.json()["data"]
    assert data["id"] == first["id"]
    assert data["package"] == "premium"
    assert data["status"] == "pending"
    # The free enrollment had no stored receipt to clean up
    assert fake_storage.deletes == []

    course_data = api_call(client, "GET", f"/courses/{course.id}").json()["data"]
    assert course_data["enrolled_students"] == 0


def test_admin_approves_pending_enrollment(
    client: TestClient, student, student_headers, admin_headers, make_course, db_session: Session
):
    course = make_course()
    enrollment = _enroll(client, course.id, student_headers, package="premium", files=RECEIPT).json()["data"]

    response = api_call(client, "POST", f"/enrollments/{enrollment['id']}/approve", headers=admin_headers)
    assert response.json()["data"]["status"] == "active"
    assert response.json()["data"]["rejection_reason"] is None

    course_data = api_call(client, "GET", f"/courses/{course.id}").json()["data"]
    assert course_data["enrolled_students"] == 1

    titles = [n.title for n in db_session.query(Notification).filter(Notification.user_id == student.id)]
    assert "Enrollment Approved" in titles

    again = client.post(f"/enrollments/{enrollment['id']}/approve", headers=admin_headers)
    assert_error(again, 400, "INVALID_STATUS_TRANSITION")


def test_only_admins_review_enrollments(client: TestClient, student_headers, make_course):
    course = make_course()
    enrollment = _enroll(client, course.id, student_headers, package="premium", files=RECEIPT).json()["data"]

    response = client.post(f"/enrollments/{enrollment['id']}/approve", headers=student_headers)
    assert_error(response, 403, "FORBIDDEN")


def test_review_missing_enrollment(client: TestClient, admin_headers):
    assert_error(client.post("/enrollments/999999/approve", headers=admin_headers), 404, "NOT_FOUND")
    assert_error(client.post("/enrollments/999999/reject", headers=admin_headers), 404, "NOT_FOUND")


def test_reject_uses_default_reason(client: TestClient, student_headers, admin_headers, make_course):
    course = make_course()
    enrollment = _enroll(client, course.id, student_headers, package="premium", files=RECEIPT).json()["data"]

    response = api_call(client, "POST", f"/enrollments/{enrollment['id']}/reject", headers=admin_headers)
    data = response.json()["data"]
    assert data["status"] == "rejected"
    assert data["rejection_reason"] == "Payment verification failed"


def test_rejected_enrollment_can_be_resubmitted(
    client: TestClient, student, student_headers, admin_headers, make_course, db_session: Session, fake_storage
):
    course = make_course()
    enrollment = _enroll(client, course.id, student_headers, package="premium", files=RECEIPT).json()["data"]

    rejected = api_call(
        client, "POST", f"/enrollments/{enrollment['id']}/reject",
        headers=admin_headers, json={"reason": "Receipt is unreadable"}
    ).json()["data"]
    assert rejected["rejection_reason"] == "Receipt is unreadable"

    messages = [n.message for n in db_session.query(Notification).filter(Notification.user_id == student.id)]
    assert any("Receipt is unreadable" in m for m in messages)

    response = _enroll(client, course.id, student_headers, package="premium", files=RECEIPT)
    assert response.status_code == 200, response.json()
    data = response.json()["data"]
    assert data["id"] == enrollment["id"]
    assert data["status"] == "pending"
    assert data["rejection_reason"] is None
    assert data["receipt_url"] == fake_storage.uploads[-1]
    assert fake_storage.deletes == [enrollment["receipt_url"]]


def test_secure_content_respects_package_tier(client: TestClient, student, make_course, make_enrollment, make_user):
    course = make_course(chapters=[["basic", "premium"], ["basic", "advanced"]], packages={
        "basic": "0", "advanced": "50", "premium": "100"
    })
    make_enrollment(student, course, package=PackageTierEnum.BASIC)

    data = api_call(client, "GET", f"/courses/{course.id}/content", headers=auth_headers(student)).json()["data"]
    visible = [m["min_package_tier"] for chapter in data["chapters"] for m in chapter["materials"]]
    assert visible == ["basic", "basic"]
    assert len(data["chapters"]) == 2
    assert data["user_progress"]["package"] == "basic"

    premium_student = make_user()
    make_enrollment(premium_student, course, package=PackageTierEnum.PREMIUM)
    data = api_call(client, "GET", f"/courses/{course.id}/content", headers=auth_headers(premium_student)).json()["data"]
    assert sum(len(chapter["materials"]) for chapter in data["chapters"]) == 4


def test_secure_content_requires_active_enrollment(client: TestClient, student, make_course, make_enrollment):
    course = make_course()
    headers = auth_headers(student)

    assert_error(client.get(f"/courses/{course.id}/content", headers=headers), 403, "NOT_ENROLLED")

    make_enrollment(student, course, status=EnrollmentStatusEnum.PENDING)
    assert_error(client.get(f"/courses/{course.id}/content", headers=headers), 403, "NOT_ENROLLED")

    assert_error(client.get("/courses/999999/content", headers=headers), 404, "NOT_FOUND")


def test_check_and_list_my_enrollments(client: TestClient, student_headers, make_course):
    course = make_course()
    other = make_course()

    check = api_call(client, "GET", f"/courses/{course.id}/enrollment", headers=student_headers).json()["data"]
    assert check == {"is_enrolled": False, "enrollment": None}

    _enroll(client, course.id, student_headers)
    check = api_call(client, "GET", f"/courses/{course.id}/enrollment", headers=student_headers).json()["data"]
    assert check["is_enrolled"] is True
    assert check["enrollment"]["course_id"] == course.id

    mine = api_call(client, "GET", "/enrollments/me", headers=student_headers).json()["data"]
    assert [e["course"]["id"] for e in mine] == [course.id]
    assert other.id not in [e["course_id"] for e in mine]


def test_review_decisions_queue_one_email_each(
    client: TestClient, student, student_headers, admin_headers, make_course, make_user, monkeypatch
):
    sent = []
    monkeypatch.setattr(event_bus, "publish", lambda event_type, data: sent.append((event_type, data)))
    course = make_course()
    approved = _enroll(client, course.id, student_headers, package="premium", files=RECEIPT).json()["data"]

    api_call(client, "POST", f"/enrollments/{approved['id']}/approve", headers=admin_headers)
    assert [(event, data["template_name"], data["to_email"]) for event, data in sent] == [
        ("email_send_requested", "enrollment_approved.html", student.email)
    ]

    # A refused transition changes nothing and sends nothing
    response = client.post(f"/enrollments/{approved['id']}/reject", headers=admin_headers)
    assert_error(response, 400, "INVALID_STATUS_TRANSITION")
    assert len(sent) == 1

    other = make_user()
    rejected = _enroll(client, course.id, auth_headers(other), package="premium", files=RECEIPT).json()["data"]
    api_call(
        client, "POST", f"/enrollments/{rejected['id']}/reject",
        headers=admin_headers, json={"reason": "Amount does not match"}
    )
    _, data = sent[-1]
    assert data["template_name"] == "enrollment_rejected.html"
    assert data["to_email"] == other.email
    assert data["template_context"]["reason"] == "Amount does not match"


def test_failed_enrollment_removes_uploaded_receipt(
    client: TestClient, student_headers, make_course, fake_storage, db_session: Session, monkeypatch
):
    course = make_course()

    def fail_refresh(*args, **kwargs):
        raise ConflictError("Could not refresh enrollment count")

    monkeypatch.setattr(crud_course, "refresh_enrolled_students", fail_refresh)
    response = _enroll(client, course.id, student_headers, package="premium", files=RECEIPT)

    assert_error(response, 409, "CONFLICT")
    assert len(fake_storage.uploads) == 1
    assert fake_storage.deletes == fake_storage.uploads
    assert db_session.query(CourseEnrollment).filter(CourseEnrollment.course_id == course.id).count() == 0
