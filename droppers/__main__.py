import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "droppers.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("APP_ENV", "dev") == "dev",
    )


if __name__ == "__main__":
    main()
