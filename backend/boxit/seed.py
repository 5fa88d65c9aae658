"""
BoxIT Backend — Demo Data Seeder
=================================

What:  Creates a verified demo account (demo@boxit.com / demo1234) with four
       storage rooms, ten boxes, their items and a labelled vocabulary.
How:   python -m boxit.seed   (or the `boxit-seed` console script)

Does nothing when the demo user already exists.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select

from boxit.config import Settings, settings as default_settings
from boxit.database import Database
from boxit.main import setup_logging
from boxit.models import Box, Item, StorageRoom, User
from boxit.security.passwords import hash_password
from boxit.services.box_service import generate_qr_code
from boxit.services.label_service import label_service

logger = logging.getLogger(__name__)

DEMO_EMAIL = "demo@boxit.com"
DEMO_PASSWORD = "demo1234"

LABELS = ["Fragile", "Heavy", "Electronics", "Clothes", "Books", "Kitchen", "Bathroom", "Seasonal"]

# room name → box name → [(item name, description)]
INVENTORY: Dict[str, Dict[str, List[Tuple[str, str]]]] = {
    "Living Room": {
        "Entertainment": [
            ("PlayStation 5", "With 2 controllers and power cable"),
            ("HDMI Cables", "3x 2m HDMI 2.1 cables"),
            ("Board Games", "Catan, Ticket to Ride, Codenames"),
            ("TV Remote", "Samsung remote + universal remote"),
        ],
        "Books & Magazines": [
            ("Fiction novels", "About 15 paperback novels"),
            ("Coffee table books", "Photography and travel books"),
            ("Magazine collection", "National Geographic 2023-2024"),
        ],
        "Decorations": [
            ("Picture frames", "6 assorted frames, wrapped in bubble wrap"),
            ("Candles & holders", "Various sizes, glass holders"),
            ("Throw pillows", "4 decorative cushions"),
            ("Vases", "2 ceramic vases, wrapped carefully"),
        ],
    },
    "Kitchen": {
        "Pots & Pans": [
            ("Cast iron skillet", "12 inch Lodge skillet"),
            ("Stock pot", "Large stainless steel, with lid"),
            ("Saucepans", "Set of 3 (small, medium, large)"),
            ("Baking sheets", "2 half-sheet pans"),
            ("Dutch oven", "Le Creuset 5.5 qt, red"),
        ],
        "Utensils & Gadgets": [
            ("Knife set", "Wusthof 8-piece block set"),
            ("Spatulas & ladles", "Silicone utensil set"),
            ("Blender", "Vitamix E310"),
            ("Toaster", "Breville 4-slice"),
        ],
        "Dishes & Glasses": [
            ("Dinner plates", "Set of 8, white ceramic"),
            ("Bowls", "Set of 8 soup bowls"),
            ("Wine glasses", "6 red wine glasses, wrapped individually"),
            ("Coffee mugs", "8 assorted mugs"),
            ("Serving platters", "2 large oval platters"),
        ],
    },
    "Bedroom": {
        "Winter Clothes": [
            ("Winter jackets", "2 down jackets, 1 rain shell"),
            ("Sweaters", "5 wool and cashmere sweaters"),
            ("Scarves & gloves", "3 scarves, 2 pairs of gloves"),
            ("Boots", "Snow boots and leather boots"),
        ],
        "Bedding": [
            ("Duvet", "Queen size, all-season"),
            ("Sheet sets", "2 sets of queen sheets"),
            ("Pillows", "4 sleeping pillows"),
            ("Blankets", "2 throw blankets"),
        ],
    },
    "Garage": {
        "Tools": [
            ("Drill", "DeWalt cordless drill with 2 batteries"),
            ("Screwdriver set", "Phillips and flathead, various sizes"),
            ("Hammer & pliers", "Claw hammer, needle-nose and regular pliers"),
            ("Measuring tape", "25ft Stanley tape measure"),
            ("Level", "24 inch spirit level"),
        ],
        "Holiday Decorations": [
            ("Christmas lights", "4 strands of LED lights"),
            ("Ornaments", "Box of ~50 assorted ornaments"),
            ("Wreath", "Artificial pine wreath, 24 inch"),
            ("Halloween decorations", "Pumpkin lights, fake cobwebs"),
        ],
    },
}

ITEM_LABELS: Dict[str, List[str]] = {
    "PlayStation 5": ["Electronics", "Fragile"],
    "HDMI Cables": ["Electronics"],
    "Picture frames": ["Fragile"],
    "Vases": ["Fragile"],
    "Cast iron skillet": ["Kitchen", "Heavy"],
    "Stock pot": ["Kitchen"],
    "Dutch oven": ["Kitchen", "Heavy"],
    "Knife set": ["Kitchen", "Fragile"],
    "Blender": ["Kitchen", "Electronics"],
    "Wine glasses": ["Kitchen", "Fragile"],
    "Dinner plates": ["Kitchen", "Fragile"],
    "Winter jackets": ["Clothes", "Seasonal"],
    "Sweaters": ["Clothes"],
    "Boots": ["Clothes", "Seasonal"],
    "Duvet": ["Clothes"],
    "Fiction novels": ["Books"],
    "Coffee table books": ["Books", "Heavy"],
    "Drill": ["Electronics", "Heavy"],
    "Christmas lights": ["Seasonal"],
    "Halloween decorations": ["Seasonal"],
}


async def seed(database: Database, qr_code_length: int = 10) -> bool:
    """Insert the demo data. Returns False when it was already present."""
    async with database.session_factory() as db:
        existing = await db.execute(select(User.id).where(User.email == DEMO_EMAIL))
        if existing.scalar_one_or_none() is not None:
            logger.info("Demo user already exists, skipping seed.")
            return False

        user = User(
            email=DEMO_EMAIL,
            password_hash=hash_password(DEMO_PASSWORD),
            name="Demo User",
            email_verified=True,
        )
        db.add(user)
        await db.flush()
        await label_service.resolve_labels(db, user.id, LABELS)

        box_count = item_count = 0
        for room_name, boxes in INVENTORY.items():
            room = StorageRoom(user_id=user.id, name=room_name)
            db.add(room)
            await db.flush()
            for box_name, items in boxes.items():
                box = Box(storage_room_id=room.id, name=box_name, qr_code=generate_qr_code(qr_code_length))
                db.add(box)
                await db.flush()
                box_count += 1
                for item_name, description in items:
                    item = Item(box_id=box.id, name=item_name, description=description)
                    db.add(item)
                    await db.flush()
                    item_count += 1
                    if item_name in ITEM_LABELS:
                        await label_service.reconcile_item_labels(
                            db, item.id, user.id, ITEM_LABELS[item_name]
                        )

        await db.commit()

    logger.info(
        "Seed complete: %d storage rooms, %d boxes, %d items, %d labels",
        len(INVENTORY), box_count, item_count, len(LABELS),
    )
    logger.info("Login: %s / %s", DEMO_EMAIL, DEMO_PASSWORD)
    return True


async def _run(settings: Settings) -> None:
    database = Database.from_settings(settings)
    try:
        if settings.db_auto_create:
            await database.create_all()
        await seed(database, settings.qr_code_length)
    finally:
        await database.dispose()


def main(settings: Optional[Settings] = None) -> None:
    settings = settings or default_settings
    setup_logging(settings.log_level)
    asyncio.run(_run(settings))


if __name__ == "__main__":
    main()
