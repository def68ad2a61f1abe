# backend/tutorhub/run.py
"""
Development server runner.

    python -m tutorhub.run
"""

import uvicorn

from .core.config import settings


def main() -> None:
    uvicorn.run(
        "tutorhub.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
