"""Owner-scoped address lookups."""

from sqlalchemy.orm import Session

from src.db.models import Address


class AddressService:
    """SQLAlchemy-backed address repository."""

    def __init__(self, db: Session) -> None:
        self.db = db

    async def get_address_by_id(self, address_id: str, owner_id: str) -> Address | None:
        """Return the address only if it belongs to owner_id."""
        return (
            self.db.query(Address)
            .filter(Address.id == address_id, Address.user_id == owner_id)
            .first()
        )
