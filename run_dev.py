# run_dev.py
"""
Local development server for the tonematch API.
Reload follows DEBUG; uvicorn's log level follows LOG_LEVEL (.env.dev).
"""

import uvicorn

from tonematch.settings import settings

if __name__ == "__main__":
    uvicorn.run(
        "tonematch.app:app",
        host="127.0.0.1",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
