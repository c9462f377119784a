# menu_analyzer/database/models.py
# Database tables for menu analyses and daily usage

from datetime import datetime
from sqlalchemy import Column, Integer, String, Date, DateTime, JSON, Index, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class MenuAnalysis(Base):
    # One row per successful analysis. Never updated in place, only deleted by its owner.

    __tablename__ = "menu_analyses"

    id = Column(String(32), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    business_name = Column(String(255), nullable=True)
    menu_source = Column(String(10), nullable=False)  # file, url or text
    menu_url = Column(Text, nullable=True)
    menu_file_name = Column(String(255), nullable=True)
    analysis_results = Column(JSON, nullable=False)
    revenue_score = Column(Integer, nullable=False)  # Copied from analysis_results for sorting
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (Index("idx_analysis_user_created", "user_id", "created_at"),)


class DailyUsage(Base):
    # Analyses completed per user per calendar day

    __tablename__ = "daily_usage"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False)
    usage_date = Column(Date, nullable=False)
    analyses_used = Column(Integer, default=0, nullable=False)
    last_analysis_at = Column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "usage_date", name="uq_usage_user_date"),  # Only one row per user per day
    )


class UserSession(Base):
    # Credentials issued by the identity provider. This service only reads them.

    __tablename__ = "user_sessions"

    token = Column(String(128), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    email = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=True)
