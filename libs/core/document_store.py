from __future__ import annotations

import json
import time
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy import JSON, BigInteger, String, create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from .kv_store import FileKeyValueStore, KeyValueStore, KeyValueStoreError, RedisKeyValueStore
from .models import ResumeData, ResumeProject

PROJECTS_KEY = "resume_projects"
MASTER_PROFILE_KEY = "master_profile"


class DocumentStoreError(RuntimeError):
    pass


class ProjectStore:
    """Persistence of resume projects and the per-user master profile."""

    def list_projects(self, user_id: str) -> List[ResumeProject]:  # pragma: no cover - interface
        raise NotImplementedError

    def get_project(self, user_id: str, project_id: str) -> Optional[ResumeProject]:  # pragma: no cover
        raise NotImplementedError

    def save_project(self, project: ResumeProject) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def delete_project(self, user_id: str, project_id: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def load_master_profile(self, user_id: str) -> Optional[ResumeData]:  # pragma: no cover
        raise NotImplementedError

    def save_master_profile(self, user_id: str, data: ResumeData) -> None:  # pragma: no cover
        raise NotImplementedError


def _sorted_newest_first(projects: List[ResumeProject]) -> List[ResumeProject]:
    return sorted(projects, key=lambda project: project.last_modified, reverse=True)


class KeyValueProjectStore(ProjectStore):
    """Guest mode storage: JSON documents under fixed keys on the local device."""

    def __init__(self, backend: KeyValueStore) -> None:
        self.backend = backend

    @staticmethod
    def _key(base: str, user_id: str) -> str:
        return f"{base}:{user_id}"

    def _read(self, key: str) -> Any:
        try:
            raw = self.backend.get(key)
        except KeyValueStoreError as exc:
            raise DocumentStoreError(str(exc)) from exc
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise DocumentStoreError(f"corrupt record under {key}: {exc.msg}") from exc

    def _write(self, key: str, value: Any) -> None:
        try:
            self.backend.set(key, json.dumps(value, ensure_ascii=False))
        except KeyValueStoreError as exc:
            raise DocumentStoreError(str(exc)) from exc

    def _load_projects(self, user_id: str) -> List[ResumeProject]:
        raw = self._read(self._key(PROJECTS_KEY, user_id)) or []
        if not isinstance(raw, list):
            raise DocumentStoreError("project list must be an array")
        try:
            return [ResumeProject.model_validate(entry) for entry in raw]
        except ValidationError as exc:
            raise DocumentStoreError(f"invalid project record: {exc.error_count()} errors") from exc

    def _store_projects(self, user_id: str, projects: List[ResumeProject]) -> None:
        self._write(
            self._key(PROJECTS_KEY, user_id), [project.to_wire() for project in projects]
        )

    def list_projects(self, user_id: str) -> List[ResumeProject]:
        return _sorted_newest_first(self._load_projects(user_id))

    def get_project(self, user_id: str, project_id: str) -> Optional[ResumeProject]:
        for project in self._load_projects(user_id):
            if project.id == project_id:
                return project
        return None

    def save_project(self, project: ResumeProject) -> None:
        projects = [p for p in self._load_projects(project.user_id) if p.id != project.id]
        projects.insert(0, project)
        self._store_projects(project.user_id, projects)

    def delete_project(self, user_id: str, project_id: str) -> None:
        projects = [p for p in self._load_projects(user_id) if p.id != project_id]
        self._store_projects(user_id, projects)

    def load_master_profile(self, user_id: str) -> Optional[ResumeData]:
        raw = self._read(self._key(MASTER_PROFILE_KEY, user_id))
        if raw is None:
            return None
        try:
            return ResumeData.model_validate(raw)
        except ValidationError as exc:
            raise DocumentStoreError(f"invalid master profile: {exc.error_count()} errors") from exc

    def save_master_profile(self, user_id: str, data: ResumeData) -> None:
        self._write(self._key(MASTER_PROFILE_KEY, user_id), data.to_wire())


class Base(DeclarativeBase):
    pass


class ProjectRecord(Base):
    __tablename__ = "resume_projects"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    user_id: Mapped[str] = mapped_column(String, index=True)
    title: Mapped[str] = mapped_column(String)
    last_modified: Mapped[int] = mapped_column(BigInteger)
    payload: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)


class ProfileRecord(Base):
    __tablename__ = "user_profiles"

    user_id: Mapped[str] = mapped_column(String, primary_key=True)
    master_profile: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    last_updated: Mapped[int] = mapped_column(BigInteger)


class SqlProjectStore(ProjectStore):
    """Cloud document store backed by any SQLAlchemy database."""

    def __init__(self, database_url: str) -> None:
        engine_kwargs: Dict[str, Any] = {}
        if database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in database_url:
                engine_kwargs["poolclass"] = StaticPool
        self.engine = create_engine(database_url, **engine_kwargs)
        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        Base.metadata.create_all(bind=self.engine)

    @staticmethod
    def _to_project(record: ProjectRecord) -> ResumeProject:
        try:
            return ResumeProject.model_validate(record.payload)
        except ValidationError as exc:
            raise DocumentStoreError(f"invalid project record {record.id}") from exc

    def list_projects(self, user_id: str) -> List[ResumeProject]:
        try:
            with self.session_factory() as db:
                records = db.scalars(
                    select(ProjectRecord)
                    .where(ProjectRecord.user_id == user_id)
                    .order_by(ProjectRecord.last_modified.desc())
                ).all()
        except SQLAlchemyError as exc:
            raise DocumentStoreError(f"list_projects failed: {exc}") from exc
        return [self._to_project(record) for record in records]

    def get_project(self, user_id: str, project_id: str) -> Optional[ResumeProject]:
        try:
            with self.session_factory() as db:
                record = db.get(ProjectRecord, project_id)
        except SQLAlchemyError as exc:
            raise DocumentStoreError(f"get_project failed: {exc}") from exc
        if record is None or record.user_id != user_id:
            return None
        return self._to_project(record)

    def save_project(self, project: ResumeProject) -> None:
        try:
            with self.session_factory() as db:
                record = db.get(ProjectRecord, project.id)
                if record is None:
                    record = ProjectRecord(id=project.id, user_id=project.user_id)
                    db.add(record)
                record.title = project.title
                record.last_modified = project.last_modified
                record.payload = project.to_wire()
                db.commit()
        except SQLAlchemyError as exc:
            raise DocumentStoreError(f"save_project failed: {exc}") from exc

    def delete_project(self, user_id: str, project_id: str) -> None:
        try:
            with self.session_factory() as db:
                record = db.get(ProjectRecord, project_id)
                if record is not None and record.user_id == user_id:
                    db.delete(record)
                    db.commit()
        except SQLAlchemyError as exc:
            raise DocumentStoreError(f"delete_project failed: {exc}") from exc

    def load_master_profile(self, user_id: str) -> Optional[ResumeData]:
        try:
            with self.session_factory() as db:
                record = db.get(ProfileRecord, user_id)
        except SQLAlchemyError as exc:
            raise DocumentStoreError(f"load_master_profile failed: {exc}") from exc
        if record is None or not record.master_profile:
            return None
        try:
            return ResumeData.model_validate(record.master_profile)
        except ValidationError as exc:
            raise DocumentStoreError(f"invalid master profile for {user_id}") from exc

    def save_master_profile(self, user_id: str, data: ResumeData) -> None:
        try:
            with self.session_factory() as db:
                record = db.get(ProfileRecord, user_id)
                if record is None:
                    record = ProfileRecord(user_id=user_id)
                    db.add(record)
                record.master_profile = data.to_wire()
                record.last_updated = int(time.time() * 1000)
                db.commit()
        except SQLAlchemyError as exc:
            raise DocumentStoreError(f"save_master_profile failed: {exc}") from exc


def create_project_store(
    backend: str,
    *,
    database_url: Optional[str] = None,
    local_store_dir: Optional[str] = None,
    redis_url: Optional[str] = None,
) -> ProjectStore:
    name = (backend or "local").strip().lower()
    if name == "sql":
        if not database_url:
            raise DocumentStoreError("DATABASE_URL is required for sql backend")
        return SqlProjectStore(database_url)
    if name == "redis":
        return KeyValueProjectStore(RedisKeyValueStore(url=redis_url))
    if name == "local":
        return KeyValueProjectStore(FileKeyValueStore(local_store_dir or "./.resume_studio"))
    raise DocumentStoreError(f"unsupported document store backend: {backend}")
