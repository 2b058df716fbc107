#!/usr/bin/env python3
"""
Backend startup wrapper for Paperify.

Usage: python -m paperify.start_backend
"""
import os

import uvicorn


def main():
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    print("[Backend] Starting Paperify Backend")
    print(f"[Backend] Server: http://{host}:{port}")
    uvicorn.run(
        "paperify.main:app",
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    main()
