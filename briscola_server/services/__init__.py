"""Engine services.

- Rooms are looked up through the injected RoomRegistry.
- Every mutation of a room happens under ``room.lock``.
- Rejections raise GameError before anything is changed.
"""
