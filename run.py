"""
run.py - Helper script to run the server
"""

import uvicorn

from classplanner.config import ENV, LOG_LEVEL, PORT

if __name__ == "__main__":
    print("Starting Class Meeting Scheduler Backend")
    print(f"Environment: {ENV}")
    print(f"Port: {PORT}")
    print(f"URL: http://localhost:{PORT}")
    print(f"Docs: http://localhost:{PORT}/docs")
    print()

    if ENV == "development":
        uvicorn.run(
            "classplanner.main:app",
            host="0.0.0.0",
            port=PORT,
            reload=True,
            log_level=LOG_LEVEL.lower()
        )
    else:
        uvicorn.run(
            "classplanner.main:app",
            host="0.0.0.0",
            port=PORT,
            workers=4,
            log_level=LOG_LEVEL.lower()
        )
