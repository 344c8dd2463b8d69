"""Tests for the update HTTP API."""

import asyncio
import json
import os
import tempfile
import unittest

from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from plugin_updater import UpdateManager
from plugin_updater.config_loader import DEFAULT_UPDATER_CONFIG
from plugin_updater.handlers.update_handlers import setup_update_routes

from .helpers import FakeResolver, FakeTransaction


class TestUpdateHandlers(unittest.TestCase):

    def setUp(self):
        self.resolver = FakeResolver({'acme/plugins': 'v1.5.0'})
        self.manager = UpdateManager(
            {'initial_delay': 100, 'stagger_delay': 0},
            resolver=self.resolver,
            transaction=FakeTransaction(),
        )
        self.manager.register_component('greeter', 'v1.0.0', 'acme', 'plugins', '/greeter.js')

    def request(self, method, path, **kwargs):
        async def run():
            app = web.Application()
            setup_update_routes(app, self.manager)
            async with TestClient(TestServer(app)) as client:
                resp = await client.request(method, path, **kwargs)
                data = await resp.json()
                # Let a started cycle finish before the loop closes
                await asyncio.sleep(0.05)
                self.manager.stop()
                return resp.status, data

        return asyncio.run(run())

    def test_status(self):
        status, data = self.request('GET', '/api/updates/status')

        self.assertEqual(status, 200)
        self.assertEqual(data['status'], 'success')
        self.assertEqual(data['update_status']['total_components'], 1)

    def test_check_all_starts_cycle(self):
        status, data = self.request('POST', '/api/updates/check')

        self.assertEqual(status, 200)
        self.assertTrue(data['started'])
        self.assertEqual(self.resolver.calls, ['acme/plugins'])
        self.assertEqual(self.manager.get_component('greeter').version, 'v1.5.0')

    def test_check_all_with_nothing_to_check(self):
        self.manager.disable('greeter')
        status, data = self.request('POST', '/api/updates/check')

        self.assertEqual(status, 200)
        self.assertFalse(data['started'])

    def test_check_one(self):
        status, data = self.request('POST', '/api/updates/check/greeter')

        self.assertEqual(status, 200)
        self.assertEqual(data['component']['version'], 'v1.5.0')
        self.assertFalse(data['component']['needs_update'])

    def test_check_unknown_component(self):
        status, data = self.request('POST', '/api/updates/check/missing')

        self.assertEqual(status, 404)
        self.assertEqual(data['status'], 'error')

    def test_check_disabled_component(self):
        self.manager.disable('greeter')
        status, _ = self.request('POST', '/api/updates/check/greeter')
        self.assertEqual(status, 409)

    def test_disable_and_enable(self):
        status, _ = self.request('POST', '/api/updates/greeter/disable')
        self.assertEqual(status, 200)
        self.assertTrue(self.manager.get_component('greeter').disabled)

        status, _ = self.request('POST', '/api/updates/greeter/enable')
        self.assertEqual(status, 200)
        self.assertFalse(self.manager.get_component('greeter').disabled)

        status, _ = self.request('POST', '/api/updates/missing/enable')
        self.assertEqual(status, 404)

    def test_update_config(self):
        status, data = self.request('PUT', '/api/updates/config', json={'stagger_delay': 42})

        self.assertEqual(status, 200)
        self.assertEqual(data['config']['stagger_delay'], 42)
        self.assertNotIn('github_token', data['config'])
        self.assertFalse(data['persisted'])
        self.assertEqual(self.manager.config['stagger_delay'], 42)

    def test_update_config_rejects_bad_body(self):
        status, _ = self.request('PUT', '/api/updates/config', data='not json')
        self.assertEqual(status, 400)

        status, _ = self.request('PUT', '/api/updates/config', json=[1, 2])
        self.assertEqual(status, 400)

    def test_update_config_rejects_invalid_values(self):
        status, data = self.request('PUT', '/api/updates/config', json={'check_interval': '60'})
        self.assertEqual(status, 400)
        self.assertIn('check_interval', data['message'])

        status, _ = self.request('PUT', '/api/updates/config', json={'check_interval': 0})
        self.assertEqual(status, 400)

        self.assertEqual(self.manager.config['check_interval'], DEFAULT_UPDATER_CONFIG['check_interval'])

    def test_update_config_is_persisted(self):
        with tempfile.TemporaryDirectory() as tmp:
            self.manager.config_path = os.path.join(tmp, 'updater.json')

            status, data = self.request('PUT', '/api/updates/config', json={'stagger_delay': 42})

            self.assertEqual(status, 200)
            self.assertTrue(data['persisted'])
            with open(self.manager.config_path) as f:
                self.assertEqual(json.load(f)['stagger_delay'], 42)

    def test_check_all_while_cycle_running(self):
        self.manager.scheduler._transaction = FakeTransaction(delay=0.1)

        async def run():
            app = web.Application()
            setup_update_routes(app, self.manager)
            async with TestClient(TestServer(app)) as client:
                first = await (await client.post('/api/updates/check')).json()
                second = await (await client.post('/api/updates/check')).json()
                await asyncio.sleep(0.2)
                self.manager.stop()
                return first, second

        first, second = asyncio.run(run())

        self.assertTrue(first['started'])
        self.assertFalse(second['started'])
        self.assertEqual(second['message'], 'Update check already in progress')
        self.assertEqual(self.resolver.calls, ['acme/plugins'])
