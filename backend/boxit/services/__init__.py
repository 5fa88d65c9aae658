"""
BoxIT Backend — Services Layer
===============================

What:  Business rules between the routes (HTTP) and the database.
How:   Each service takes an AsyncSession and the acting user's id and
       reaches every resource through the ownership chain in ownership.py.
       Services flush; the request-scoped session commits.

Service Inventory:
    auth_service          accounts, verification, login, password reset
    storage_room_service  rooms
    box_service           boxes, QR codes, public box lookup
    item_service          items, moves, image lifecycle
    label_service         per-user label vocabulary and item labels
    search_service        free-text search
    image_service         upload validation
    local_storage / cloudinary_storage   ImageStorage backends
    email_service         verification and reset emails (console, Resend)
    qr_service            QR PNG rendering
    upstream              retry policy for vendor SDK calls
"""
