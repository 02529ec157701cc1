from app.backend.src.core.config import get_settings
from app.backend.src.db import Database


def init_db():
    settings = get_settings()
    database = Database(settings.database_url)
    print(f"🚀 Connecting to {database.engine.url.render_as_string(hide_password=True)}")
    database.create_all()
    print("✅ Tables created successfully!")


if __name__ == "__main__":
    init_db()
