"""Domain layer (pure logic).

- Keep game rules, the commitment scheme and public-input encoding here.
- Avoid I/O: no DB sessions, no HTTP/FastAPI, no Redis.
- Prefer deterministic functions (randomness and time are passed in by callers).
"""
