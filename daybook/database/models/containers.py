"""
List, Journal and Note Models
------------------------------

Secondary content that can be referenced from a day or an item.

Models:
    - List: Named, reusable list of items (container)
    - Journal: A user's journal for one date (container)
    - JournalPrompt: Prompt answered inside a journal (container)
    - JournalFragment: Piece of journal text (leaf)
    - Note: Free text note, may be linked from several collections (leaf)

Containers get their ordered collection on creation (see ItemManager and
DescendantManager); leaves only ever appear as references.
"""
from __future__ import annotations

from datetime import date
from typing import List as ListType
from typing import Optional

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, ContainerMixin, ReferenceableMixin, TimestampMixin


def _preview(text: Optional[str], limit: int = 100) -> str:
    if not text:
        return ""
    return text if len(text) <= limit else f"{text[: limit - 3]}..."


class List(Base, TimestampMixin, ContainerMixin, ReferenceableMixin):
    """
    Named list that can be linked into days.

    Attributes:
        id: Primary key
        user_id: Owning user
        title: Display title
        slug: URL-safe unique identifier
    """

    __tablename__ = "lists"
    __table_args__ = (CheckConstraint("title != ''", name="ck_list_non_empty_title"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<List(id={self.id}, slug={self.slug})>"

    def __str__(self) -> str:
        return self.title


class Journal(Base, TimestampMixin, ContainerMixin, ReferenceableMixin):
    """
    Journal of a single date.

    Attributes:
        id: Primary key
        user_id: Owning user
        date: Journal date (unique per user)

    Relationships:
        prompts: One-to-many with JournalPrompt
        fragments: One-to-many with JournalFragment
    """

    __tablename__ = "journals"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_journal_user_date"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date: Mapped[date] = mapped_column(Date, nullable=False)

    prompts: Mapped[ListType["JournalPrompt"]] = relationship(
        "JournalPrompt", back_populates="journal", cascade="all, delete-orphan"
    )
    fragments: Mapped[ListType["JournalFragment"]] = relationship(
        "JournalFragment", back_populates="journal", cascade="all, delete-orphan"
    )

    @property
    def date_display(self) -> str:
        return self.date.strftime("%A, %B %d, %Y")

    def __repr__(self) -> str:
        return f"<Journal(id={self.id}, date={self.date})>"


class JournalPrompt(Base, TimestampMixin, ContainerMixin, ReferenceableMixin):
    """Prompt inside a journal; owns the answers given to it."""

    __tablename__ = "journal_prompts"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    journal_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("journals.id", ondelete="CASCADE"), nullable=False
    )
    prompt_text: Mapped[str] = mapped_column(Text, nullable=False)

    journal: Mapped["Journal"] = relationship("Journal", back_populates="prompts")

    @property
    def prompt_preview(self) -> str:
        return _preview(self.prompt_text)

    def __repr__(self) -> str:
        return f"<JournalPrompt(id={self.id}, journal_id={self.journal_id})>"


class JournalFragment(Base, TimestampMixin, ReferenceableMixin):
    """Piece of text written into a journal."""

    __tablename__ = "journal_fragments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    journal_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("journals.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)

    journal: Mapped["Journal"] = relationship("Journal", back_populates="fragments")

    @property
    def content_preview(self) -> str:
        return _preview(self.content)

    def __repr__(self) -> str:
        return f"<JournalFragment(id={self.id}, journal_id={self.journal_id})>"


class Note(Base, TimestampMixin, ReferenceableMixin):
    """
    Free text note.

    A note is never copied; collections that show it hold a reference to
    the same row, so one note may appear under several days or items.
    """

    __tablename__ = "notes"
    __table_args__ = (CheckConstraint("content != ''", name="ck_note_non_empty_content"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)

    @property
    def content_preview(self) -> str:
        return _preview(self.content)

    def __repr__(self) -> str:
        return f"<Note(id={self.id})>"

    def __str__(self) -> str:
        return self.content_preview
