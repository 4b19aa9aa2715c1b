# app/main.py
import uvicorn

from app.api import create_app
from app.data.database import Base, engine
from app.data.seed import seed
from app.utils.logging import get_logger

# modele musza byc zarejestrowane w Base.metadata przed create_all
import app.data.models  # noqa: F401

logger = get_logger(__name__)

logger.info(f"Initializing database, tables: {sorted(Base.metadata.tables.keys())}")
try:
    Base.metadata.create_all(bind=engine)
    seed()
    logger.info("Database ready")
except Exception:
    logger.exception("Failed to initialize database")
    raise


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
