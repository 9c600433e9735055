"""
Dev bootstrap script — a principal and a project for local development.

Usage:
    python -m scripts.bootstrap_dev [email] [password]

This will:
  1. Reuse the principal with that email, or register it
     (defaults: dev@feedback.local / devpassword)
  2. Create a project named "Dev Project" owned by it
  3. Print the project's API key for the widget's X-API-Key header

Assumes the schema exists (`alembic upgrade head`).
"""

import asyncio
import sys

# Ensure the project root is on the path
sys.path.insert(0, ".")

from feedback_api.core.database import async_session_factory, engine
from feedback_api.schemas.project import ProjectCreate
from feedback_api.services.principals import get_principal_by_email, register_principal
from feedback_api.services.projects import create_project

DEFAULT_EMAIL = "dev@feedback.local"
DEFAULT_PASSWORD = "devpassword"


async def main(email: str, password: str) -> None:
    async with async_session_factory() as session:
        # ── Principal ───────────────────────────────────────
        principal = await get_principal_by_email(session, email)
        created_principal = principal is None
        if principal is None:
            principal = await register_principal(session, email, password, "Dev User")

        # ── Project ─────────────────────────────────────────
        project = await create_project(
            session,
            principal.id,
            ProjectCreate(name="Dev Project", domain="http://localhost:3000"),
        )

    # ── Print results ───────────────────────────────────────
    print()
    print("=" * 60)
    print("  Dev Bootstrap Complete")
    print("=" * 60)
    print()
    print(f"  Principal:  {principal.email}" + ("  (new)" if created_principal else ""))
    if created_principal:
        print(f"  Password:   {password}")
    print(f"  Project:    {project.name}")
    print(f"  Project ID: {project.id}")
    print()
    print(f"  API Key:    {project.api_key}")
    print()
    print("  Send it as the X-API-Key header from the widget.")
    print("=" * 60)
    print()

    await engine.dispose()


if __name__ == "__main__":
    args = sys.argv[1:]
    asyncio.run(
        main(
            args[0] if args else DEFAULT_EMAIL,
            args[1] if len(args) > 1 else DEFAULT_PASSWORD,
        )
    )
