import sys
import os
import tempfile
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SENDGRID_API_KEY"] = ""
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="coursequest-logs-"))
os.environ["TESTING"] = "true"

import uuid
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

import main
from app.core.constants import (
    AvatarTypeEnum, CourseStatusEnum, EnrollmentStatusEnum, PackageTierEnum, RoleEnum, UnlockConditionEnum
)
from app.core.database import commit_session, rollback_session
from app.models.avatar import Avatar
from app.models.chapter import Chapter, Material
from app.models.course import Course, CoursePackage
from app.models.course_enrollment import CourseEnrollment
from app.models.registry import Base
from app.models.user import User
from app.services.storage import storage_service
from app.utils import deps as deps_utils
from tests.helpers.factories import auth_headers


@pytest.fixture(scope="session")
def database_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite needs manual BEGIN for SAVEPOINT to behave
    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(database_engine):
    """Session whose commits only release a savepoint; everything is undone after the test."""
    connection = database_engine.connect()
    transaction = connection.begin()
    db = Session(bind=connection, autoflush=False, join_transaction_mode="create_savepoint")
    try:
        yield db
    finally:
        db.close()
        transaction.rollback()
        connection.close()


@pytest.fixture(scope="function")
def client(db_session):
    def override_get_db():
        yield db_session

    def override_get_transactional_db():
        try:
            yield db_session
            commit_session(db_session)
        except Exception:
            rollback_session(db_session)
            raise

    main.app.dependency_overrides[deps_utils.get_db] = override_get_db
    main.app.dependency_overrides[deps_utils.get_transactional_db] = override_get_transactional_db
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()


class FakeStorage:
    def __init__(self):
        self.uploads = []
        self.deletes = []

    def upload_file(self, content, filename, content_type, folder):
        url = f"https://files.test/{folder}/{len(self.uploads) + 1}-{filename}"
        self.uploads.append(url)
        return url

    def delete_file(self, url):
        self.deletes.append(url)


@pytest.fixture(autouse=True)
def fake_storage(monkeypatch):
    storage = FakeStorage()
    monkeypatch.setattr(storage_service, "upload_file", storage.upload_file)
    monkeypatch.setattr(storage_service, "delete_file", storage.delete_file)
    return storage


@pytest.fixture
def make_user(db_session):
    def _make_user(role: RoleEnum = RoleEnum.STUDENT, **kwargs) -> User:
        suffix = uuid.uuid4().hex[:8]
        user = User(
            username=kwargs.pop("username", f"user_{suffix}"),
            email=kwargs.pop("email", f"user-{suffix}@test.com"),
            role=role,
            is_active=kwargs.pop("is_active", True),
            xp_points=kwargs.pop("xp_points", 0),
            level=kwargs.pop("level", 1),
            avatar_unlock_tokens=kwargs.pop("avatar_unlock_tokens", 0),
            **kwargs
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make_user


@pytest.fixture
def student(make_user):
    return make_user(first_name="Sam")


@pytest.fixture
def admin(make_user):
    return make_user(role=RoleEnum.ADMIN, first_name="Ada")


@pytest.fixture
def student_headers(student):
    return auth_headers(student)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def make_avatar(db_session):
    def _make_avatar(type: AvatarTypeEnum = AvatarTypeEnum.PREMIUM, **kwargs) -> Avatar:
        avatar = Avatar(
            name=kwargs.pop("name", f"Avatar {uuid.uuid4().hex[:4]}"),
            image_url=kwargs.pop("image_url", f"https://img.test/{uuid.uuid4().hex[:8]}.png"),
            type=type,
            unlock_condition=kwargs.pop("unlock_condition", UnlockConditionEnum.NONE),
            **kwargs
        )
        db_session.add(avatar)
        db_session.commit()
        db_session.refresh(avatar)
        return avatar
    return _make_avatar


@pytest.fixture
def make_course(db_session):
    """Build a course from ``chapters``: one list of material tiers per chapter."""
    def _make_course(
        packages=None,
        chapters=None,
        completion_xp_bonus: int = 100,
        xp_reward: int = 10,
        reward_avatar_id=None,
        status: CourseStatusEnum = CourseStatusEnum.ONGOING,
    ) -> Course:
        packages = packages if packages is not None else {"basic": "0", "premium": "100"}
        chapters = chapters if chapters is not None else [["basic", "premium"], ["basic"]]
        course = Course(
            title=f"Course {uuid.uuid4().hex[:6]}",
            description="Learn by doing",
            completion_xp_bonus=completion_xp_bonus,
            reward_avatar_id=reward_avatar_id,
            status=status,
        )
        course.packages = [
            CoursePackage(tier=PackageTierEnum(tier), price=Decimal(price), features=[])
            for tier, price in packages.items()
        ]
        for position, tiers in enumerate(chapters):
            chapter = Chapter(title=f"Chapter {position + 1}", position=position, xp_reward=xp_reward)
            chapter.materials = [
                Material(
                    title=f"Material {position + 1}.{index + 1}",
                    url=f"https://files.test/materials/{position}-{index}.mp4",
                    min_package_tier=PackageTierEnum(tier),
                    position=index,
                )
                for index, tier in enumerate(tiers)
            ]
            course.chapters.append(chapter)
        db_session.add(course)
        db_session.commit()
        db_session.refresh(course)
        return course
    return _make_course


@pytest.fixture
def make_enrollment(db_session):
    def _make_enrollment(
        user: User,
        course: Course,
        package: PackageTierEnum = PackageTierEnum.BASIC,
        status: EnrollmentStatusEnum = EnrollmentStatusEnum.ACTIVE,
        **kwargs
    ) -> CourseEnrollment:
        enrollment = CourseEnrollment(
            user_id=user.id,
            course_id=course.id,
            package=package,
            status=status,
            amount_paid=kwargs.pop("amount_paid", Decimal("0")),
            progress=kwargs.pop("progress", 0),
            **kwargs
        )
        db_session.add(enrollment)
        db_session.commit()
        db_session.refresh(enrollment)
        return enrollment
    return _make_enrollment
