"""Domain layer (pure logic).

- Keep card and trick rules here.
- Avoid I/O: no websockets, no FastAPI, no timers.
- Randomness is passed in as a numpy Generator so results are reproducible.
"""
