from __future__ import annotations

import logging
from typing import Any

from flask import Flask

from thermacore.blueprints.api.notifications import notifications_api
from thermacore.blueprints.api.settings import settings_api
from thermacore.blueprints.api.units import units_api
from thermacore.config import load_config, setup_logging

logger = logging.getLogger(__name__)


def create_app(
    config_overrides: dict[str, Any] | None = None,
    *,
    storage=None,
    unit_client=None,
    sound_sink=None,
    load_remote: bool = True,
) -> Flask:
    """Build the ThermaCore API application.

    ``storage``, ``unit_client`` and ``sound_sink`` replace the configured
    collaborators (tests inject in-memory fakes here).
    """
    config = load_config()
    if config_overrides:
        for key, value in config_overrides.items():
            setattr(config, key if hasattr(config, key) else key.lower(), value)

    setup_logging(debug=config.DEBUG, log_dir=config.log_dir, level=config.log_level)

    flask_app = Flask(__name__)
    flask_app.config.update(config.as_flask_config())

    from thermacore.services.container import ServiceContainer

    container = ServiceContainer.build(
        config,
        storage=storage,
        unit_client=unit_client,
        sound_sink=sound_sink,
        load_remote=load_remote,
    )
    flask_app.config["CONTAINER"] = container

    flask_app.register_blueprint(settings_api, url_prefix="/api/settings")
    flask_app.register_blueprint(units_api, url_prefix="/api/units")
    flask_app.register_blueprint(notifications_api, url_prefix="/api/notifications")

    logger.info("ThermaCore API ready (environment=%s)", config.environment)
    return flask_app
