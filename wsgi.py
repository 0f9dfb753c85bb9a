"""WSGI entry point for production server."""

import sys

from commute_match import create_app

# Capture the full traceback when app init fails so gunicorn boot errors are debuggable
try:
    app = create_app()
except Exception:
    import traceback

    print("\nFATAL: Failed to create Flask application during startup:\n", file=sys.stderr)
    traceback.print_exc()
    raise

if __name__ == "__main__":
    app.run()
