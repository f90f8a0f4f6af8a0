"""User profile store."""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from docvault.core.exceptions import PersistenceError
from docvault.db.models import User, UserRole

log = logging.getLogger(__name__)


class UserStore:
    """Store for user profile operations, keyed by account."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, account: str) -> Optional[User]:
        return self.db.query(User).filter(User.account == account.lower()).first()

    def upsert(
        self,
        account: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        organization: Optional[str] = None,
        role: Optional[str] = None,
        **identity_fields,
    ) -> User:
        """Create a user or update the supplied (non-empty) fields.

        Args:
            account: Wallet account
            name, email, organization, role: Profile fields
            identity_fields: did, identity_id, metadata_ref

        Raises:
            PersistenceError: If the row cannot be written
        """
        user = self.get(account)
        created = user is None
        if created:
            user = User(account=account, role=role or UserRole.USER.value)
            self.db.add(user)

        for attr, value in (
            ("name", name),
            ("email", email),
            ("organization", organization),
            ("role", role),
            *identity_fields.items(),
        ):
            if value not in (None, ""):
                setattr(user, attr, value)

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            log.error(f"Failed to save user {account}: {e}")
            raise PersistenceError(f"Failed to save user: {e}") from e

        self.db.refresh(user)
        log.info(f"{'Created' if created else 'Updated'} user {user.account}")
        return user
