"""Owner profile records and the gamification rules applied on upload.

The profile belongs to the owning principal. The ingestion core only
appends file entries to it and applies the upload side effects: the note
counter, a study activity, the daily streak and upload badges.
"""

from datetime import UTC, datetime
from typing import Literal

from pydantic import Field

from studyvault.models.base import CamelModel
from studyvault.models.extraction import ProcessingResult

StudyActivityKind = Literal[
    "note_created",
    "summary_generated",
    "flashcard_created",
    "quiz_completed",
    "study_room_joined",
]


def utcnow() -> datetime:
    return datetime.now(UTC)


class FileMetadataEntry(CamelModel):
    """Index record for one stored blob.

    Attributes:
        id: Blob id this entry references.
        filename: Stored filename.
        original_name: Filename as sent by the client.
        mimetype: Declared content type.
        upload_date: When the entry was committed.
        extracted_text: Extracted text, empty when extraction failed.
        processing_result: Extraction outcome, ``None`` if none was attempted.
    """

    id: str
    filename: str
    original_name: str
    mimetype: str
    upload_date: datetime = Field(default_factory=utcnow)
    extracted_text: str = ""
    processing_result: ProcessingResult | None = None


class StudyActivity(CamelModel):
    activity: StudyActivityKind
    details: str
    timestamp: datetime = Field(default_factory=utcnow)


class Badge(CamelModel):
    name: str
    description: str
    icon: str
    earned_at: datetime = Field(default_factory=utcnow)


class Streaks(CamelModel):
    current: int = Field(default=0, ge=0)
    longest: int = Field(default=0, ge=0)
    last_study_date: datetime | None = None


class ProfileStats(CamelModel):
    total_notes: int = Field(default=0, ge=0)
    total_summaries: int = Field(default=0, ge=0)
    total_flashcards: int = Field(default=0, ge=0)
    total_quizzes: int = Field(default=0, ge=0)
    study_rooms_joined: int = Field(default=0, ge=0)


class OwnerProfile(CamelModel):
    """Profile of a principal, holding its file index in insertion order."""

    id: str
    uploaded_files: list[FileMetadataEntry] = Field(default_factory=list)
    stats: ProfileStats = Field(default_factory=ProfileStats)
    study_history: list[StudyActivity] = Field(default_factory=list)
    streaks: Streaks = Field(default_factory=Streaks)
    badges: list[Badge] = Field(default_factory=list)

    def remove_file(self, file_id: str) -> bool:
        """Drop the entry for ``file_id``.

        Returns:
            True if an entry was removed.
        """
        remaining = [entry for entry in self.uploaded_files if entry.id != file_id]
        removed = len(remaining) != len(self.uploaded_files)
        self.uploaded_files = remaining
        return removed

    def update_streak(self, now: datetime | None = None) -> None:
        """Advance the daily study streak.

        Consecutive days extend the streak, a gap of more than one day resets
        it to 1, and repeated activity on the same day leaves it unchanged.
        """
        now = now or utcnow()
        last = self.streaks.last_study_date

        if last is None:
            self.streaks.current = 1
            self.streaks.longest = max(self.streaks.longest, 1)
        else:
            days = (now - last).days
            if days == 1:
                self.streaks.current += 1
                self.streaks.longest = max(self.streaks.longest, self.streaks.current)
            elif days > 1:
                self.streaks.current = 1

        self.streaks.last_study_date = now

    def add_badge(self, name: str, description: str, icon: str) -> bool:
        """Award a badge unless one with the same name already exists.

        Returns:
            True if the badge was newly awarded.
        """
        if any(badge.name == name for badge in self.badges):
            return False
        self.badges.append(Badge(name=name, description=description, icon=icon))
        return True

    def record_upload(self, entry: FileMetadataEntry, now: datetime | None = None) -> None:
        """Append ``entry`` and apply the upload side effects."""
        now = now or utcnow()
        self.uploaded_files.append(entry)
        self.stats.total_notes += 1
        self.study_history.append(
            StudyActivity(
                activity="note_created",
                details=f"Uploaded file: {entry.original_name}",
                timestamp=now,
            )
        )
        self.update_streak(now)

        upload_count = len(self.uploaded_files)
        if upload_count == 1:
            self.add_badge("First Upload", "Uploaded your first file!", "📁")
        elif upload_count == 10:
            self.add_badge("File Master", "Uploaded 10 files!", "🗂️")
