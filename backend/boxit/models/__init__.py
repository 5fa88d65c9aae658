"""
BoxIT ORM models.

Ownership runs top-down: User → StorageRoom → Box → Item. Labels belong to
a User and are attached to Items through the ItemLabel join table.
Importing this package registers every table on `Base.metadata`.
"""

from boxit.models.user import User
from boxit.models.storage_room import StorageRoom
from boxit.models.box import Box
from boxit.models.item import Item
from boxit.models.label import Label, ItemLabel

__all__ = ["User", "StorageRoom", "Box", "Item", "Label", "ItemLabel"]
