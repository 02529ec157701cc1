"""Seed the development database with a demo affiliate and users."""

from app.backend.src.core.config import get_settings
from app.backend.src.db import Database
from app.backend.src.services.seed import seed_development_data


def main() -> None:
    """Create tables (if needed) and ensure the demo records exist."""

    database = Database(get_settings().database_url)
    database.create_all()

    with database.session_scope() as session:
        result = seed_development_data(session)
        session.flush()

        print("✅ Development data ready!")
        affiliate_status = "created" if result.affiliate_created else "unchanged"
        print(
            f"Affiliate ({affiliate_status}): {result.affiliate.name} "
            f"[id={result.affiliate.id}, code={result.affiliate.company_code}]"
        )
        for user in (result.admin, result.finance, result.affiliate_user):
            print(f"User: {user.full_name} <{user.email}> [id={user.id}, role={user.role}]")
        print()
        print(f"{result.users_created} user(s) created.")


if __name__ == "__main__":
    main()
