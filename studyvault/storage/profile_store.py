"""Owner profile persistence.

Profiles are stored as JSON documents keyed by principal id. A principal
that has never uploaded anything gets an empty profile on first read.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

from studyvault.errors import ProfileStorageError
from studyvault.models.profile import OwnerProfile
from studyvault.storage.database import ProfileRecord, create_session_factory

logger = logging.getLogger(__name__)


class ProfileStore:
    """Get-by-id and save for owner profiles.

    ``get`` followed by ``save`` is a plain read-modify-write: concurrent
    writers for the same owner are not serialized and the last save wins.
    """

    def __init__(self, engine: Engine) -> None:
        self._session_factory = create_session_factory(engine)

    def get(self, owner_id: str) -> OwnerProfile:
        """Load the profile for ``owner_id``, or a new empty one.

        Raises:
            ProfileStorageError: if the profile cannot be read.
        """
        try:
            with self._session_factory() as session:
                record = session.get(ProfileRecord, owner_id)
                document = record.document if record is not None else None
        except SQLAlchemyError as e:
            raise ProfileStorageError(f"Failed to load profile {owner_id}: {e}") from e

        if document is None:
            logger.debug(f"No profile stored for {owner_id}, starting empty")
            return OwnerProfile(id=owner_id)
        return OwnerProfile.model_validate(document)

    def save(self, profile: OwnerProfile) -> None:
        """Persist the whole profile document.

        Raises:
            ProfileStorageError: if the profile cannot be written.
        """
        document = profile.model_dump(mode="json", by_alias=True)
        try:
            with self._session_factory.begin() as session:
                record = session.get(ProfileRecord, profile.id)
                if record is None:
                    session.add(
                        ProfileRecord(
                            id=profile.id,
                            document=document,
                            updated_at=datetime.now(UTC),
                        )
                    )
                else:
                    record.document = document
                    record.updated_at = datetime.now(UTC)
        except SQLAlchemyError as e:
            raise ProfileStorageError(f"Failed to save profile {profile.id}: {e}") from e
