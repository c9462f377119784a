"""Setup script to initialize the application."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from menu_analyzer.config import get_settings


def create_tables():
    """Create database tables."""
    from menu_analyzer.database import init_db

    settings = get_settings()
    init_db()
    print(f"✓ Database ready: {settings.DATABASE_URL}")


def check_env_file():
    """Check if .env file exists."""
    env_path = get_settings().BASE_DIR / ".env"

    if not env_path.exists():
        print("❌ .env file not found!")
        print("Creating template .env file...")

        template = """# Generative model
OPENROUTER_API_KEY=your_key_here
DEFAULT_MODEL_NAME=google/gemini-2.5-flash

# Database
DATABASE_URL=sqlite:///./menu_analyzer.db

# Intake and quota
MAX_FILE_SIZE_MB=15
DAILY_ANALYSIS_LIMIT=10

# CRM webhook (optional)
CRM_WEBHOOK_URL=
CRM_API_KEY=

# Debug
DEBUG=True
LOG_LEVEL=DEBUG
"""
        env_path.write_text(template)
        print("✓ Created .env template. Please fill in your API keys.")
        return False

    print("✓ .env file configured")
    return True


def main():
    print("=" * 50)
    print("Menu Analyzer API - Setup")
    print("=" * 50)

    env_ok = check_env_file()
    create_tables()

    if not env_ok:
        print("\nEdit menu_analyzer/.env, then run: uvicorn menu_analyzer.main:app --reload")
        sys.exit(1)

    print("\nSetup complete. Run: uvicorn menu_analyzer.main:app --reload")


if __name__ == "__main__":
    main()
