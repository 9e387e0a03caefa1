"""Run the service with uvicorn: ``python -m clipclean``."""

from __future__ import annotations

import os

import uvicorn


def main() -> None:
    port = int(os.getenv("PORT", "3000"))
    uvicorn.run("clipclean.main:app", host=os.getenv("HOST", "0.0.0.0"), port=port)


if __name__ == "__main__":
    main()
