"""
BoxIT Backend — Label Reconciliation
=====================================

What:  Converges an item's labels to exactly a requested set of names,
       drawn from the requesting user's own label vocabulary.

Algorithm (full replace, not diff):
    1. Delete every ItemLabel row of the item
    2. Normalize the names: trim, drop empty strings, collapse duplicates
    3. Find-or-create a Label per (user_id, name)
    4. Insert one ItemLabel per resolved label

All steps run in the request's transaction (see database.get_db_session),
so a failure part-way leaves the previous label set in place. Applying the
same set twice yields the same rows; an empty set clears all labels.
"""

import logging
import uuid
from typing import Iterable, List

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from boxit.models import ItemLabel, Label
from boxit.schemas.inventory import LabelListResponse, LabelResponse

logger = logging.getLogger(__name__)


def normalize_label_names(names: Iterable[str]) -> List[str]:
    """Trim, skip blanks, drop repeats; first occurrence keeps its position."""
    seen = set()
    normalized = []
    for raw in names:
        name = raw.strip()
        if not name or name in seen:
            continue
        seen.add(name)
        normalized.append(name)
    return normalized


class LabelService:
    """Per-user label vocabulary and item/label links."""

    async def resolve_labels(
        self, db: AsyncSession, user_id: uuid.UUID, names: Iterable[str]
    ) -> List[Label]:
        """
        Find-or-create a Label for every normalized name, scoped to user_id.

        Returns labels in the order of the (normalized) input.
        """
        wanted = normalize_label_names(names)
        if not wanted:
            return []

        result = await db.execute(
            select(Label).where(Label.user_id == user_id, Label.name.in_(wanted))
        )
        existing = {label.name: label for label in result.scalars()}

        created = []
        for name in wanted:
            if name not in existing:
                label = Label(user_id=user_id, name=name)
                db.add(label)
                existing[name] = label
                created.append(name)
        if created:
            await db.flush()
            logger.info("Created %d label(s) for user %s", len(created), user_id)

        return [existing[name] for name in wanted]

    async def reconcile_item_labels(
        self,
        db: AsyncSession,
        item_id: uuid.UUID,
        user_id: uuid.UUID,
        names: Iterable[str],
    ) -> List[Label]:
        """Replace the item's labels with `names`. Returns the attached labels."""
        await db.execute(delete(ItemLabel).where(ItemLabel.item_id == item_id))

        labels = await self.resolve_labels(db, user_id, names)
        for label in labels:
            db.add(ItemLabel(item_id=item_id, label_id=label.id))
        await db.flush()

        logger.debug("Item %s now has %d label(s)", item_id, len(labels))
        return labels

    async def list_labels(self, db: AsyncSession, user_id: uuid.UUID) -> LabelListResponse:
        result = await db.execute(
            select(Label).where(Label.user_id == user_id).order_by(Label.name)
        )
        return LabelListResponse(
            labels=[LabelResponse.model_validate(label) for label in result.scalars()]
        )


label_service = LabelService()
