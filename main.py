"""
Entry point to run the web app locally.
"""
import os

import uvicorn


if __name__ == "__main__":
    uvicorn.run(
        "app.api:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "").lower() in ("1", "true", "yes"),
    )
