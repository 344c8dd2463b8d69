"""
Plugin Updater - Main Entry Point

Runs the update manager as a small aiohttp service. Components listed in
components.json are registered at startup and the update API is served for
the manual command surface.
"""

import logging
from aiohttp import web

from .config_loader import get_updater_config, get_components_config, UPDATER_CONFIG_PATH
from .handlers.update_handlers import setup_update_routes
from .updater.manager import UpdateManager

logger = logging.getLogger(__name__)


def init_app(manager, components=None):
    """Initializes the Aiohttp application with routes.

    Args:
        manager: UpdateManager serving the routes
        components: component definitions registered on startup
    """
    app = web.Application()
    setup_update_routes(app, manager)

    async def register_components(app):
        # Registration needs the running loop to start the scheduler
        for component in components or []:
            manager.register_component(
                component['name'],
                component['version'],
                component['owner'],
                component['repository'],
                component['artifact_path'],
            )
        logger.info(f"Registered {len(components or [])} component(s) from configuration")

    async def stop_manager(app):
        manager.stop()

    app.on_startup.append(register_components)
    app.on_cleanup.append(stop_manager)
    return app


def main():
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

    config = get_updater_config()
    components = get_components_config()
    if not components:
        logger.warning("No components configured, nothing will be updated until components are registered")

    manager = UpdateManager(config, config_path=UPDATER_CONFIG_PATH)
    app = init_app(manager, components)
    web.run_app(app, host=config['host'], port=config['port'])


if __name__ == '__main__':
    main()
