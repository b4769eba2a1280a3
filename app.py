import logging
from typing import Iterable, Optional

from quart import Quart

from cosmosdb_services.db.init_clients import Registration, init_cosmos_db_service
from cosmosdb_services.logging_config import configure_logging
from cosmosdb_services.routes.health import health_bp
from cosmosdb_services.settings import AppSettings, get_app_settings

logger = logging.getLogger("cosmosdb_services")


def create_app(settings: Optional[AppSettings] = None,
               registrations: Iterable[Registration] = ()) -> Quart:
    settings = settings or get_app_settings()
    configure_logging(settings.logging.log_level, settings.logging.log_file)

    app = Quart(__name__)
    app.register_blueprint(health_bp)

    # Cosmos DB service, available as app.cosmos_db_service once serving
    init_cosmos_db_service(app, settings.cosmos, registrations)

    logger.info("App created for Cosmos DB database %s", settings.cosmos.database)
    return app


if __name__ == "__main__":
    create_app().run()
