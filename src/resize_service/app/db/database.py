from loguru import logger
from tortoise import Tortoise

from ..core.config import get_settings

MODEL_MODULES = ["src.resize_service.app.models.batch"]


def get_tortoise_config() -> dict:
    settings = get_settings()
    database_url = settings.absolute_database_url

    # tortoise expects sqlite://<path>
    if database_url.startswith("sqlite:///"):
        database_url = database_url.replace("sqlite:///", "sqlite://", 1)

    return {
        "connections": {"default": database_url},
        "apps": {
            "models": {
                "models": MODEL_MODULES,
                "default_connection": "default",
            }
        },
    }


async def init_db() -> None:
    try:
        logger.info("Initializing database connection...")
        await Tortoise.init(config=get_tortoise_config())
        await Tortoise.generate_schemas(safe=True)
        logger.info("Database schemas ready")

    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        raise


async def close_db() -> None:
    await Tortoise.close_connections()
    logger.info("Database connections closed")
