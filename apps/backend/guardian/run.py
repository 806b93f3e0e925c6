import uvicorn
from .config import settings  # ensures .env is loaded

if __name__ == "__main__":
    uvicorn.run(
        "guardian.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=(settings.ENV == "development")
    )
