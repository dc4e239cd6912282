"""
RUN SCRIPT - Start the CivicHub chat server
===========================================

PURPOSE:
  Single entry point to start the backend.

WHAT IT DOES:
  - Imports the FastAPI app from civichub.main.
  - Runs it with uvicorn on HOST (default 0.0.0.0) and PORT (default 8000).
  - reload=True restarts the server when Python files change (development).

USAGE:
  python run.py

  API docs: http://localhost:8000/docs

NOTE:
  Before running, set at least one of OPENROUTER_API_KEY, GEMINI_API_KEY or
  HF_TOKEN in .env, otherwise POST /chat answers with a configuration error.
"""

import os

import uvicorn


def main():
    uvicorn.run(
        "civichub.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )


if __name__ == "__main__":
    main()
