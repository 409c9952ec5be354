"""Key/value site configuration store."""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.db.models import SiteConfig


class SiteConfigService:
    """Reads and writes the flat site_config table."""

    def __init__(self, db: Session) -> None:
        self.db = db

    async def get_config_map(self) -> dict[str, str | None]:
        return {row.key: row.value for row in self.db.query(SiteConfig).all()}

    async def upsert(self, key: str, value: str) -> None:
        row = self.db.get(SiteConfig, key)
        if row is None:
            self.db.add(SiteConfig(key=key, value=value))
        else:
            row.value = value
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
