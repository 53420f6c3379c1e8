# storefront/repositories/user_repo.py
import uuid
from datetime import datetime, timezone

from sqlmodel import Session

from storefront.models.user import User


class UserRepository:
    """
    Storefront profiles (public.users), keyed by the Supabase auth user id.

    Credentials never live here; Supabase Auth owns them.
    """

    def get_by_id(self, session: Session, user_id: uuid.UUID) -> User | None:
        return session.get(User, user_id)

    def provision(self, session: Session, profile: User) -> User:
        """
        Return the stored profile for `profile.id`, inserting `profile`
        first when the auth user has none yet.
        """
        existing = session.get(User, profile.id)
        if existing is not None:
            return existing
        session.add(profile)
        session.commit()
        session.refresh(profile)
        return profile

    def save(self, session: Session, user: User) -> User:
        """Persist profile edits and bump updated_at."""
        user.updated_at = datetime.now(timezone.utc)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
