"""
SQLAlchemy models for RepoLens
"""

from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.orm import declarative_base
from datetime import datetime, timezone

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RepositoryAnalysis(Base):
    """Latest analysis of a repository, one row per full name (owner/repo)"""
    __tablename__ = "repository_analyses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String, nullable=False, unique=True, index=True)
    owner = Column(String, nullable=False)
    name = Column(String, nullable=False)
    analyzed_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    view_count = Column(Integer, default=1, nullable=False)

    # Scores duplicated from the result for listing without JSON decoding
    security_score = Column(Integer, nullable=False)  # 0-100
    maintainability_score = Column(Integer, nullable=False)  # 0-100
    documentation_score = Column(Integer, nullable=False)  # 0-100

    result = Column(Text, nullable=False)  # JSON: Full AnalysisResult object

    def __repr__(self):
        return f"<RepositoryAnalysis(id={self.id}, full_name='{self.full_name}', views={self.view_count})>"
