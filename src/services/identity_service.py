"""Customer profile and account lookups."""

from sqlalchemy.orm import Session

from src.db.models import UserAccount, UserProfile


class IdentityService:
    """Reads customer identity records for order snapshots."""

    def __init__(self, db: Session) -> None:
        self.db = db

    async def get_profile(self, user_id: str) -> UserProfile | None:
        return self.db.get(UserProfile, user_id)

    async def get_account_email(self, user_id: str) -> str | None:
        account = self.db.get(UserAccount, user_id)
        return account.email if account is not None else None
