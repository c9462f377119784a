from menu_analyzer.database.db import init_db, get_db, engine, SessionLocal
from menu_analyzer.database.models import Base, MenuAnalysis, DailyUsage, UserSession

__all__ = [
    "init_db",
    "get_db",
    "engine",
    "SessionLocal",
    "Base",
    "MenuAnalysis",
    "DailyUsage",
    "UserSession",
]
