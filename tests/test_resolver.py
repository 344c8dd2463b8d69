"""Tests for the latest release lookup against a local releases API."""

import asyncio
import unittest

from aiohttp import web
from aiohttp.test_utils import TestServer

from plugin_updater.updater.resolver import (
    fetch_latest_version,
    get_latest_release_url,
    get_request_headers,
)


def make_releases_app(requests):
    """Fake releases API; the repository name selects the answer."""
    async def latest_release(request):
        repo = request.match_info['repo']
        requests.append((request.match_info['owner'], repo, request.headers.get('Authorization')))
        if repo == 'missing':
            return web.json_response({'message': 'Not Found'}, status=404)
        if repo == 'broken':
            return web.Response(status=500, text='oops')
        if repo == 'notag':
            return web.json_response({'name': 'release without tag'})
        if repo == 'garbage':
            return web.Response(text='not json')
        if repo == 'slow':
            await asyncio.sleep(1)
        return web.json_response({'tag_name': 'v1.5.0'})

    app = web.Application()
    app.router.add_get('/repos/{owner}/{repo}/releases/latest', latest_release)
    return app


class TestFetchLatestVersion(unittest.TestCase):

    def _fetch(self, repo, **kwargs):
        requests = []

        async def run():
            async with TestServer(make_releases_app(requests)) as server:
                api_url = str(server.make_url('/')).rstrip('/')
                return await fetch_latest_version('acme', repo, api_url=api_url, **kwargs)

        return asyncio.run(run()), requests

    def test_returns_tag_name(self):
        tag, requests = self._fetch('plugins')
        self.assertEqual(tag, 'v1.5.0')
        self.assertEqual(len(requests), 1)

    def test_not_found_is_absent(self):
        with self.assertLogs('plugin_updater.updater.resolver', level='WARNING') as logs:
            tag, requests = self._fetch('missing')
        self.assertIsNone(tag)
        self.assertEqual(len(requests), 1)
        self.assertTrue(any('not found or has no releases' in line for line in logs.output))

    def test_server_error_is_absent(self):
        with self.assertLogs('plugin_updater.updater.resolver', level='ERROR'):
            tag, _ = self._fetch('broken')
        self.assertIsNone(tag)

    def test_missing_tag_is_absent(self):
        tag, _ = self._fetch('notag')
        self.assertIsNone(tag)

    def test_invalid_json_is_absent(self):
        tag, _ = self._fetch('garbage')
        self.assertIsNone(tag)

    def test_timeout_is_absent(self):
        tag, _ = self._fetch('slow', timeout=0.1)
        self.assertIsNone(tag)

    def test_token_is_sent(self):
        _, requests = self._fetch('plugins', token='secret')
        self.assertEqual(requests[0][2], 'Bearer secret')

    def test_unreachable_host_is_absent(self):
        async def run():
            return await fetch_latest_version('acme', 'plugins', api_url='http://127.0.0.1:1', timeout=2)

        self.assertIsNone(asyncio.run(run()))


class TestRequestHelpers(unittest.TestCase):

    def test_release_url(self):
        self.assertEqual(
            get_latest_release_url('acme', 'plugins', 'https://api.example.com/'),
            'https://api.example.com/repos/acme/plugins/releases/latest'
        )

    def test_headers_without_token(self):
        headers = get_request_headers()
        self.assertNotIn('Authorization', headers)
        self.assertEqual(headers['Accept'], 'application/vnd.github+json')
