import logging

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from . import config
from .models import Base, RepositoryAnalysis
from .schemas import AnalysisResult

logger = logging.getLogger(__name__)

connect_args = {"check_same_thread": False} if config.DATABASE_URL.startswith("sqlite") else {}

# Engine
engine = create_engine(config.DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)

# SessionLocal
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db():
    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_analysis(session: Session, full_name: str) -> RepositoryAnalysis | None:
    return session.query(RepositoryAnalysis).filter(RepositoryAnalysis.full_name == full_name).first()


def _apply_result(row: RepositoryAnalysis, result: AnalysisResult) -> None:
    row.analyzed_at = result.analyzed_at
    row.security_score = result.security_score
    row.maintainability_score = result.maintainability_score
    row.documentation_score = result.documentation_score
    row.result = result.model_dump_json(by_alias=True)


def upsert_analysis(session: Session, owner: str, name: str, result: AnalysisResult) -> RepositoryAnalysis:
    """Store `result` as the latest analysis of owner/name, replacing any previous one."""
    full_name = f"{owner}/{name}"
    row = get_analysis(session, full_name)

    if row is None:
        try:
            row = RepositoryAnalysis(full_name=full_name, owner=owner, name=name, view_count=1)
            _apply_result(row, result)
            session.add(row)
            session.commit()
            return row
        except IntegrityError:
            # Another concurrent request created it - rollback and update instead
            session.rollback()
            row = get_analysis(session, full_name)
            if row is None:
                raise

    row.view_count = (row.view_count or 0) + 1
    _apply_result(row, result)
    session.commit()
    logger.debug(f"Replaced stored analysis for {full_name} (views={row.view_count})")
    return row


def load_result(row: RepositoryAnalysis) -> AnalysisResult:
    return AnalysisResult.model_validate_json(row.result)


def list_recent_analyses(session: Session, limit: int = 20) -> list[RepositoryAnalysis]:
    return (
        session.query(RepositoryAnalysis)
        .order_by(RepositoryAnalysis.analyzed_at.desc())
        .limit(limit)
        .all()
    )


def delete_analysis(session: Session, full_name: str) -> bool:
    row = get_analysis(session, full_name)
    if row is None:
        return False
    session.delete(row)
    session.commit()
    return True

