"""Entry point: python -m scanner_tool"""

import uvicorn
from .config import settings


def main():
    uvicorn.run(
        "scanner_tool.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
