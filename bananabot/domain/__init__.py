"""Domain layer (pure logic).

- Keep business rules and calculations here.
- Avoid I/O: no DB sessions, no HTTP/FastAPI, no outbound requests.
- Prefer deterministic functions (time passed in as arguments if needed).
"""
