"""
BoxIT Backend — Inventory API Schemas
======================================

What:  Request and response models for storage rooms, boxes, items,
       labels, search and the public QR box view.

Request bodies are validated here before any service runs: JSON bodies by
FastAPI directly, multipart item forms through `ItemForm.from_form`.
"""

import json
import uuid
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, Field, StringConstraints

from boxit.exceptions import InvalidInputError

# Column widths of items.name, items.category and labels.name
MAX_NAME_LENGTH = 255
MAX_CATEGORY_LENGTH = 255
MAX_LABEL_LENGTH = 100

Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=MAX_NAME_LENGTH)]


# ══════════════════════════════════════════════════════════════════════════
# Request Schemas
# ══════════════════════════════════════════════════════════════════════════

class StorageRoomCreate(BaseModel):
    name: Name = Field(description="Room name, e.g. 'Garage'")


class StorageRoomUpdate(BaseModel):
    name: Name


class BoxCreate(BaseModel):
    name: Name = Field(description="Box name, e.g. 'Tools'")
    storage_room_id: uuid.UUID = Field(description="Room that will hold the box")


class BoxCreateInRoom(BaseModel):
    name: Name


class BoxUpdate(BaseModel):
    name: Name


class ItemForm(BaseModel):
    """
    Validated multipart fields of an item create or update.

    `labels` is None when the client did not send the field at all, which
    on update means "leave labels as they are". An empty list clears them.
    `category` follows the same rule through `model_fields_set`: it is only
    in the set when the form carried the field, and a blank value clears it.
    """

    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    labels: Optional[List[str]] = None
    delete_image: bool = False
    destination_box_id: Optional[uuid.UUID] = None

    @property
    def category_sent(self) -> bool:
        return "category" in self.model_fields_set

    @classmethod
    def from_form(
        cls,
        name: Optional[str],
        description: Optional[str] = None,
        category: Optional[str] = None,
        labels: Optional[str] = None,
        delete_image: Optional[str] = None,
        destination_box_id: Optional[str] = None,
    ) -> "ItemForm":
        """Parse raw form strings. Raises InvalidInputError on the first bad field."""
        clean_name = (name or "").strip()
        if not clean_name:
            raise InvalidInputError("Name is required", field="name")
        if len(clean_name) > MAX_NAME_LENGTH:
            raise InvalidInputError(
                f"Name must be at most {MAX_NAME_LENGTH} characters", field="name"
            )

        destination: Optional[uuid.UUID] = None
        if destination_box_id and destination_box_id.strip():
            try:
                destination = uuid.UUID(destination_box_id.strip())
            except ValueError:
                raise InvalidInputError(
                    "destination_box_id must be a valid box id", field="destination_box_id"
                )

        fields = dict(
            name=clean_name,
            description=_blank_to_none(description),
            labels=parse_label_payload(labels),
            delete_image=(delete_image or "").strip().lower() == "true",
            destination_box_id=destination,
        )
        if category is not None:
            clean_category = _blank_to_none(category)
            if clean_category is not None and len(clean_category) > MAX_CATEGORY_LENGTH:
                raise InvalidInputError(
                    f"Category must be at most {MAX_CATEGORY_LENGTH} characters", field="category"
                )
            fields["category"] = clean_category
        return cls(**fields)


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def parse_label_payload(raw: Optional[str]) -> Optional[List[str]]:
    """
    Decode the `labels` form field: a JSON array of strings.

    Returns None when the field is absent. Anything that is not a JSON
    array of strings, or a name longer than MAX_LABEL_LENGTH once trimmed,
    raises InvalidInputError.
    """
    if raw is None:
        return None
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError:
        raise InvalidInputError("Labels must be a JSON array of strings", field="labels")
    if not isinstance(decoded, list) or not all(isinstance(v, str) for v in decoded):
        raise InvalidInputError("Labels must be a JSON array of strings", field="labels")
    if any(len(v.strip()) > MAX_LABEL_LENGTH for v in decoded):
        raise InvalidInputError(
            f"Labels must be at most {MAX_LABEL_LENGTH} characters", field="labels"
        )
    return decoded


# ══════════════════════════════════════════════════════════════════════════
# Response Schemas
# ══════════════════════════════════════════════════════════════════════════

class LabelResponse(BaseModel):
    id: uuid.UUID
    name: str

    model_config = {"from_attributes": True}


class LabelListResponse(BaseModel):
    labels: List[LabelResponse]


class ItemResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = Field(default=None, description="Retrievable image reference")
    box_id: uuid.UUID
    labels: List[LabelResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class BoxRef(BaseModel):
    id: uuid.UUID
    name: str


class ItemDetailResponse(ItemResponse):
    box: BoxRef


class ItemUpdateResponse(BaseModel):
    item: ItemResponse
    moved: bool = Field(description="True when the item changed boxes")


class BoxSummary(BaseModel):
    id: uuid.UUID
    name: str
    qr_code: str = Field(description="Public identifier encoded in the printed QR code")
    storage_room_id: uuid.UUID
    item_count: int
    created_at: datetime
    updated_at: datetime


class BoxResponse(BoxSummary):
    items: List[ItemResponse] = Field(default_factory=list)


class BoxListResponse(BaseModel):
    boxes: List[BoxResponse]


class BoxQRResponse(BaseModel):
    qr_code: str
    url: str = Field(description="Public URL the QR code points to")
    qr_code_image: str = Field(description="PNG image as a data URI")


class StorageRoomResponse(BaseModel):
    id: uuid.UUID
    name: str
    box_count: int
    boxes: List[BoxSummary] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class StorageRoomListResponse(BaseModel):
    storage_rooms: List[StorageRoomResponse]


# ── Search ────────────────────────────────────────────────────────────────

class SearchItemHit(ItemResponse):
    box_name: str
    storage_room_id: uuid.UUID
    storage_room_name: str


class SearchBoxHit(BaseModel):
    id: uuid.UUID
    name: str
    qr_code: str
    item_count: int
    storage_room_id: uuid.UUID
    storage_room_name: str


class SearchRoomHit(BaseModel):
    id: uuid.UUID
    name: str
    box_count: int


class SearchResponse(BaseModel):
    items: List[SearchItemHit] = Field(default_factory=list)
    boxes: List[SearchBoxHit] = Field(default_factory=list)
    storage_rooms: List[SearchRoomHit] = Field(default_factory=list)


# ── Public QR view ────────────────────────────────────────────────────────
# Carries no room, owner or label data.

class PublicItem(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    created_at: datetime


class PublicBox(BaseModel):
    name: str
    qr_code: str
    items: List[PublicItem]


class PublicBoxResponse(BaseModel):
    box: PublicBox
