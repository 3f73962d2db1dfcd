import json

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from midnight.models import PlatformType, ServerContext


class FakeBackend:
    """
    Modrinth + GitHub + file host on one local aiohttp server.

    Every request is recorded as (path, query, headers) in `requests`.
    Paths in `failing` answer 500.
    """

    def __init__(self):
        self.versions = {}
        self.releases = {}
        self.latest = {}
        self.files = {}
        self.failing = set()
        self.bodies = {}
        self.requests = []
        self.base_url = ""

        self.app = web.Application(middlewares=[self.raw_body])
        self.app.router.add_get("/v2/project/{slug}/version", self.project_versions)
        self.app.router.add_get(
            "/repos/{owner}/{repo}/releases/latest", self.latest_release
        )
        self.app.router.add_get(
            "/repos/{owner}/{repo}/releases/tags/{tag}", self.tagged_release
        )
        self.app.router.add_get("/assets/{owner}/{repo}/{tag}", self.release_assets)
        self.app.router.add_get("/files/{name}", self.file)
        self.app.router.add_get("/stream/{name}", self.stream_without_length)

    def file_url(self, name):
        return f"{self.base_url}/files/{name}"

    def add_version(
        self,
        slug,
        version_number,
        files,
        date_published="2023-06-01T00:00:00Z",
        loaders=("fabric",),
        game_versions=("1.20.1",),
    ):
        """files: iterable of (filename, content, primary)"""
        file_entries = []
        for filename, content, primary in files:
            self.files[filename] = content
            file_entries.append(
                {
                    "url": self.file_url(filename),
                    "filename": filename,
                    "primary": primary,
                    "size": len(content),
                    "hashes": {},
                }
            )
        self.versions.setdefault(slug, []).append(
            {
                "id": f"{slug}-{version_number}",
                "version_number": version_number,
                "date_published": date_published,
                "loaders": list(loaders),
                "game_versions": list(game_versions),
                "files": file_entries,
            }
        )

    def add_release(self, repo, tag, assets, latest=False):
        """assets: dict of asset name -> content"""
        self.releases[(repo, tag)] = list(assets)
        self.files.update(assets)
        if latest:
            self.latest[repo] = tag

    @web.middleware
    async def raw_body(self, request, handler):
        """Paths in `bodies` answer 200 with that exact text."""
        if request.path in self.bodies:
            self._record(request)
            return web.Response(
                text=self.bodies[request.path], content_type="application/json"
            )
        return await handler(request)

    def paths(self):
        return [path for path, _, _ in self.requests]

    def _record(self, request):
        self.requests.append((request.path, dict(request.query), dict(request.headers)))
        if request.path in self.failing:
            raise web.HTTPInternalServerError()

    async def project_versions(self, request):
        self._record(request)
        slug = request.match_info["slug"]
        if slug not in self.versions:
            raise web.HTTPNotFound()
        loaders = json.loads(request.query.get("loaders", "[]"))
        game_versions = json.loads(request.query.get("game_versions", "[]"))
        result = [
            v
            for v in self.versions[slug]
            if (not loaders or set(loaders) & set(v["loaders"]))
            and (not game_versions or set(game_versions) & set(v["game_versions"]))
        ]
        return web.json_response(result)

    def _release_response(self, owner, repo, tag):
        if (f"{owner}/{repo}", tag) not in self.releases:
            raise web.HTTPNotFound()
        return web.json_response(
            {
                "tag_name": tag,
                "assets_url": f"{self.base_url}/assets/{owner}/{repo}/{tag}",
            }
        )

    async def latest_release(self, request):
        self._record(request)
        owner, repo = request.match_info["owner"], request.match_info["repo"]
        tag = self.latest.get(f"{owner}/{repo}")
        if tag is None:
            raise web.HTTPNotFound()
        return self._release_response(owner, repo, tag)

    async def tagged_release(self, request):
        self._record(request)
        info = request.match_info
        return self._release_response(info["owner"], info["repo"], info["tag"])

    async def release_assets(self, request):
        self._record(request)
        info = request.match_info
        names = self.releases[(f"{info['owner']}/{info['repo']}", info["tag"])]
        return web.json_response(
            [{"name": name, "url": self.file_url(name)} for name in names]
        )

    async def file(self, request):
        self._record(request)
        name = request.match_info["name"]
        if name not in self.files:
            raise web.HTTPNotFound()
        return web.Response(body=self.files[name])

    async def stream_without_length(self, request):
        self._record(request)
        response = web.StreamResponse()
        response.enable_chunked_encoding()
        await response.prepare(request)
        await response.write(self.files.get(request.match_info["name"], b"data"))
        await response.write_eof()
        return response


@pytest.fixture
async def backend():
    backend = FakeBackend()
    server = TestServer(backend.app)
    await server.start_server()
    backend.base_url = f"http://{server.host}:{server.port}"
    yield backend
    await server.close()


@pytest.fixture
async def session():
    async with aiohttp.ClientSession() as session:
        yield session


@pytest.fixture
def fabric_context():
    return ServerContext(
        platform_type=PlatformType.FABRIC,
        game_version="1.20.1",
        source_order=("modrinth", "github", "direct", "local"),
    )


@pytest.fixture
def jar_bytes():
    # larger than one download chunk
    return bytes(range(256)) * 200
