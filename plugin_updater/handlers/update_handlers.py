"""
Update API handlers.

This module provides HTTP request handlers for the manual update surface:
status, manual checks, per-component enable/disable and configuration.
"""

import json
import logging
from aiohttp import web

from ..updater.manager import UpdateManager

logger = logging.getLogger(__name__)

UPDATE_MANAGER_KEY = web.AppKey('update_manager', UpdateManager)


def _component_not_found(name):
    return web.json_response({
        'status': 'error',
        'message': f'Component {name} is not registered'
    }, status=404)


async def get_update_status(request):
    """Returns the update status of all registered components."""
    try:
        manager = request.app[UPDATE_MANAGER_KEY]
        return web.json_response({
            'status': 'success',
            'update_status': manager.get_status()
        })
    except Exception as e:
        logger.error(f"Error getting update status: {e}")
        return web.json_response({
            'status': 'error',
            'message': str(e)
        }, status=500)


async def check_all_updates(request):
    """Starts a check cycle for all components without waiting for it."""
    try:
        manager = request.app[UPDATE_MANAGER_KEY]
        if manager.cycle_in_progress:
            return web.json_response({
                'status': 'success',
                'started': False,
                'message': 'Update check already in progress'
            })

        cycle = manager.check_all()

        if cycle is None:
            return web.json_response({
                'status': 'success',
                'started': False,
                'message': 'Nothing to check'
            })

        return web.json_response({
            'status': 'success',
            'started': True,
            'message': 'Update check started'
        })
    except Exception as e:
        logger.error(f"Error starting update check: {e}")
        return web.json_response({
            'status': 'error',
            'message': str(e)
        }, status=500)


async def check_component_update(request):
    """Checks a single component and waits for the result."""
    name = request.match_info['name']
    try:
        manager = request.app[UPDATE_MANAGER_KEY]
        record = manager.get_component(name)
        if record is None:
            return _component_not_found(name)

        if record.disabled:
            return web.json_response({
                'status': 'error',
                'message': f'Updates for {name} are disabled'
            }, status=409)

        record = await manager.check_one(name)
        return web.json_response({
            'status': 'success',
            'component': record.to_dict()
        })
    except Exception as e:
        logger.error(f"Error checking component {name}: {e}")
        return web.json_response({
            'status': 'error',
            'message': str(e)
        }, status=500)


async def enable_component_updates(request):
    """Enables automatic and manual checks for a component."""
    name = request.match_info['name']
    manager = request.app[UPDATE_MANAGER_KEY]

    if not manager.enable(name):
        return _component_not_found(name)

    return web.json_response({
        'status': 'success',
        'message': f'Enabled updates for {name}'
    })


async def disable_component_updates(request):
    """Excludes a component from automatic and manual checks."""
    name = request.match_info['name']
    manager = request.app[UPDATE_MANAGER_KEY]

    if not manager.disable(name):
        return _component_not_found(name)

    return web.json_response({
        'status': 'success',
        'message': f'Disabled updates for {name}'
    })


async def update_updater_config(request):
    """Validates the posted settings, merges them over the configuration and saves it."""
    try:
        data = await request.json()
    except json.JSONDecodeError:
        return web.json_response({'status': 'error', 'message': 'Invalid JSON body.'}, status=400)

    if not isinstance(data, dict):
        return web.json_response({'status': 'error', 'message': 'Expected a JSON object.'}, status=400)

    manager = request.app[UPDATE_MANAGER_KEY]
    try:
        config = manager.configure(**data)
    except ValueError as e:
        return web.json_response({'status': 'error', 'message': str(e)}, status=400)

    try:
        persisted = False
        if manager.config_path:
            if not manager.save_config():
                return web.json_response({
                    'status': 'error',
                    'message': 'Configuration applied but could not be saved'
                }, status=500)
            persisted = True

        # Never echo credentials
        config.pop('github_token', None)

        return web.json_response({
            'status': 'success',
            'message': 'Configuration updated successfully',
            'persisted': persisted,
            'config': config
        })
    except Exception as e:
        logger.error(f"Error updating updater config: {e}")
        return web.json_response({
            'status': 'error',
            'message': str(e)
        }, status=500)


def setup_update_routes(app, manager):
    """Registers the update routes and the manager on an application."""
    app[UPDATE_MANAGER_KEY] = manager

    app.router.add_get('/api/updates/status', get_update_status)
    app.router.add_post('/api/updates/check', check_all_updates)
    app.router.add_post('/api/updates/check/{name}', check_component_update)
    app.router.add_post('/api/updates/{name}/enable', enable_component_updates)
    app.router.add_post('/api/updates/{name}/disable', disable_component_updates)
    app.router.add_put('/api/updates/config', update_updater_config)
