"""Shared fixtures for search builder tests."""

from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy import ForeignKey, Integer, String, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, relationship

from search_builder import FilterSpec, HandlerRegistry

# ---------------------------------------------------------------------------
# Test models
# ---------------------------------------------------------------------------


class Base(DeclarativeBase):
    pass


class CourseRecord(Base):
    __tablename__ = "courses"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String)


class StudentRecord(Base):
    __tablename__ = "students"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    course_id: Mapped[int] = mapped_column(ForeignKey("courses.id"))
    grade: Mapped[int] = mapped_column(Integer)
    day: Mapped[str] = mapped_column(String)
    real_name: Mapped[str] = mapped_column(String)
    email: Mapped[str | None] = mapped_column(String, nullable=True)

    course: Mapped[CourseRecord] = relationship()
    notes: Mapped[list[NoteRecord]] = relationship(back_populates="student")


class NoteRecord(Base):
    __tablename__ = "notes"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    student_id: Mapped[int] = mapped_column(ForeignKey("students.id"))
    body: Mapped[str] = mapped_column(String)

    student: Mapped[StudentRecord] = relationship(back_populates="notes")


STUDENTS = [
    (1, 111, 1, "2019-05-20", "Alice Zhang", "alice@example.com"),
    (2, 111, 2, "2019-06-05", "Bob Li", None),
    (3, 222, 3, "2019-06-15", "Carol Zhang", "carol@example.com"),
    (4, 333, 2, "2019-07-02", "Dan Wu", "dan@example.com"),
    (5, 222, 4, "2019-06-30", "Erin Ma", None),
]


@pytest.fixture
def session():
    """In-memory SQLite session seeded with courses, students and notes."""
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    with Session(engine) as db:
        db.add_all(
            [
                CourseRecord(id=111, title="Math"),
                CourseRecord(id=222, title="Physics"),
                CourseRecord(id=333, title="Art"),
            ]
        )
        db.add_all(
            [
                StudentRecord(
                    id=sid,
                    course_id=course_id,
                    grade=grade,
                    day=day,
                    real_name=name,
                    email=email,
                )
                for sid, course_id, grade, day, name, email in STUDENTS
            ]
        )
        db.add_all(
            [
                NoteRecord(id=1, student_id=1, body="first"),
                NoteRecord(id=2, student_id=1, body="second"),
            ]
        )
        db.commit()
        yield db
    engine.dispose()


# ---------------------------------------------------------------------------
# Filter spec
# ---------------------------------------------------------------------------


def grade_band(backend: Any, value: Any) -> None:
    """Special filter: ``grade_band=senior`` means grades 3 and 4."""
    if value == "senior":
        backend.add_in("grade", [3, 4])
    else:
        backend.add_in("grade", [1, 2])


@pytest.fixture
def student_spec() -> FilterSpec:
    handlers = HandlerRegistry()
    handlers.register("grade_band", grade_band)
    return FilterSpec(
        normal_fields={"course_id", "grade"},
        not_fields={"not_grade", "not_course_id"},
        range_fields={"range_day", "range_grade"},
        contain_fields={"contain_real_name"},
        special_fields={"grade_band"},
        includable_relations={"course"},
        handlers=handlers,
    )


# ---------------------------------------------------------------------------
# Search engine client
# ---------------------------------------------------------------------------


class FakeSearchClient:
    """Records ``search`` calls and returns a canned response."""

    def __init__(
        self,
        response: dict[str, Any] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.calls: list[dict[str, Any]] = []
        self.response = response or {"hits": {"hits": [], "total": 0}}
        self.error = error

    def search(self, **params: Any) -> dict[str, Any]:
        self.calls.append(params)
        if self.error is not None:
            raise self.error
        return self.response


def make_hits(*sources: dict[str, Any], total: Any = None) -> dict[str, Any]:
    return {
        "hits": {
            "total": len(sources) if total is None else total,
            "hits": [{"_id": str(i), "_source": s} for i, s in enumerate(sources)],
        }
    }


@pytest.fixture
def search_client() -> FakeSearchClient:
    return FakeSearchClient()
