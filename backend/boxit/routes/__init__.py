"""
BoxIT Backend — API Routes Package
===================================

Route Inventory:
    auth.py           /api/auth/*            accounts and sessions
    storage_rooms.py  /api/storage-rooms/*   rooms and their boxes
    boxes.py          /api/boxes/*           boxes and QR images
    items.py          /api/boxes/{id}/items, /api/items/*
    labels.py         /api/labels
    search.py         /api/search
    public.py         /api/public/boxes/{qr_code}   (no session)
    files.py          /api/files/{path}      local image storage
    health.py         /health

Routes stay thin: parse the request, call a service, shape the response.
"""
