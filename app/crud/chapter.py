from typing import List, Optional
from sqlalchemy.orm import Session, selectinload

from app.crud.base import CRUDBase
from app.models.chapter import Chapter, Material
from app.schemas.course import ChapterCreate, ChapterUpdate, MaterialCreate, MaterialUpdate


class CRUDChapter(CRUDBase[Chapter, ChapterCreate, ChapterUpdate]):

    def get_by_course(self, db: Session, *, course_id: int) -> List[Chapter]:
        return (
            db.query(Chapter)
            .options(selectinload(Chapter.materials))
            .filter(Chapter.course_id == course_id)
            .order_by(Chapter.position, Chapter.id)
            .populate_existing()
            .all()
        )

    def get_in_course(self, db: Session, *, chapter_id: int, course_id: int) -> Optional[Chapter]:
        return (
            db.query(Chapter)
            .filter(Chapter.id == chapter_id, Chapter.course_id == course_id)
            .first()
        )


class CRUDMaterial(CRUDBase[Material, MaterialCreate, MaterialUpdate]):

    def get_in_course(self, db: Session, *, material_id: int, course_id: int) -> Optional[Material]:
        return (
            db.query(Material)
            .join(Chapter, Chapter.id == Material.chapter_id)
            .filter(Material.id == material_id, Chapter.course_id == course_id)
            .first()
        )

    def get_in_chapter(self, db: Session, *, material_id: int, chapter_id: int) -> Optional[Material]:
        return (
            db.query(Material)
            .filter(Material.id == material_id, Material.chapter_id == chapter_id)
            .first()
        )

chapter = CRUDChapter(Chapter)
material = CRUDMaterial(Material)
