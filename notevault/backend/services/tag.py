"""
Tag Service.

Per-user tag CRUD. Names are normalized (trimmed, lower-cased) before
validation, so "Work" and "work" collide.
"""

import re
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from notevault.backend.core.exceptions import NotFoundError
from notevault.backend.models.note import Note
from notevault.backend.models.tag import DEFAULT_TAG_COLOR, Tag
from notevault.backend.models.user import User
from notevault.backend.repositories.note import NoteRepository
from notevault.backend.repositories.tag import TagRepository
from notevault.backend.services.base import BaseService, FieldErrors

TAG_NAME_MAX_LENGTH = 100
COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")


def normalize_tag_name(name: str | None) -> str:
    return (name or "").strip().lower()


def normalize_color(color: str | None) -> str | None:
    if color is None:
        return None
    return color.strip() or None


class TagService(BaseService):
    """Service for tag business logic. Tags are only visible to their owner."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = TagRepository(session)
        self.notes = NoteRepository(session)

    async def list_tags(self, user: User) -> list[Tag]:
        return await self.repo.list_for_user(user.id)

    async def get_tag(self, tag_id: str, user: User) -> Tag:
        tag = await self.repo.get_for_user(tag_id, user.id)
        if tag is None:
            raise NotFoundError("Tag not found")
        return tag

    async def get_tag_with_notes(self, tag_id: str, user: User) -> tuple[Tag, list[Note]]:
        """A tag together with the non-trashed notes carrying it that the user can read."""
        tag = await self.get_tag(tag_id, user)
        notes = await self.notes.list_accessible_with_tag(user.id, tag.id)
        return tag, notes

    async def create_tag(self, user: User, name: str | None, color: str | None = DEFAULT_TAG_COLOR) -> Tag:
        """
        Create a tag for user.

        Raises:
            ValidationError: If the name is blank, too long or taken, or the
                color is not a #rrggbb code
        """
        normalized = normalize_tag_name(name)
        color = normalize_color(color)
        await self._validate(user, normalized, color)

        tag = await self._execute_db_operation(
            "create_tag",
            self.repo.create(user_id=user.id, name=normalized, color=color),
            unique_field=("name", "has already been taken"),
        )
        self._log_operation("Tag created", tag_id=tag.id)
        return tag

    async def update_tag(self, tag_id: str, user: User, changes: dict[str, Any]) -> Tag:
        """Rename or recolor a tag. Only name and color are updatable."""
        tag = await self.get_tag(tag_id, user)
        name = normalize_tag_name(changes["name"]) if "name" in changes else tag.name
        color = normalize_color(changes["color"]) if "color" in changes else tag.color
        await self._validate(user, name, color, exclude_id=tag.id)

        tag.name = name
        tag.color = color
        tag = await self._execute_db_operation(
            "update_tag",
            self.repo.save(tag),
            unique_field=("name", "has already been taken"),
        )
        self._log_operation("Tag updated", tag_id=tag.id)
        return tag

    async def delete_tag(self, tag_id: str, user: User) -> None:
        """Delete a tag. Its note links go with it; notes are untouched."""
        tag = await self.get_tag(tag_id, user)
        await self._execute_db_operation("delete_tag", self.repo.delete(tag))
        self._log_operation("Tag deleted", tag_id=tag_id)

    async def _validate(
        self,
        user: User,
        name: str,
        color: str | None,
        exclude_id: str | None = None,
    ) -> None:
        errors = FieldErrors()
        if errors.require("name", name):
            errors.max_length("name", name, TAG_NAME_MAX_LENGTH)
            if await self.repo.name_taken(user.id, name, exclude_id=exclude_id):
                errors.add("name", "has already been taken")
        if color is not None and not COLOR_PATTERN.match(color):
            errors.add("color", "must be a valid hex color (e.g., #ff0000)")
        errors.raise_if_any()
