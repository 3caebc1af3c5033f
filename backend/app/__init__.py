"""Top-level application package for the meter reading API.

This package contains all modules required to run the FastAPI backend
that turns photographs of water and gas meters into readings.  It
includes the database model, Pydantic schemas, the request validators,
the service layer (duplicate detection, reading extraction, image
storage, persistence and the orchestrating measure service) and the API
routers.

To run the API locally you can execute:

```bash
cd backend
uvicorn app.api.main:app --reload
```

This will serve the FastAPI application on http://localhost:8000 and
automatically reload on code changes. The default configuration uses
a local SQLite database stored in ``measures.db`` and keeps uploaded
images under ``storage/images``. You can override configuration values
using environment variables or a ``.env`` file at the project root.
"""

__all__: list[str] = []  # explicit for linters; populated dynamically elsewhere if needed
