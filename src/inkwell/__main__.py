"""Inkwell entrypoint.

Run with:
  python -m inkwell
"""

import os
import uvicorn

def main() -> None:
    host = os.getenv("INKWELL_HOST", "127.0.0.1")
    port = int(os.getenv("INKWELL_PORT", "8000"))
    reload = os.getenv("INKWELL_RELOAD", "false").lower() in {"1", "true", "yes", "y"}
    uvicorn.run("inkwell.app:app", host=host, port=port, reload=reload)

if __name__ == "__main__":
    main()
