"""Tests for the control-plane endpoints in portmap.control."""

import asyncio
import socket

import httpx

from portmap.config import PortmapConfig
from portmap.control.app import create_app
from portmap.forward.echo import start_echo_server


def _make_app(**overrides):
    cfg = PortmapConfig(LISTEN_IP="127.0.0.1", **overrides)
    return create_app(cfg)


def _client(app, remote_ip: str = "127.0.0.1") -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=app, client=(remote_ip, 40000))
    return httpx.AsyncClient(transport=transport, base_url="http://portmap")


# =============================================================================
# /bind and /list
# =============================================================================


class TestBindEndpoint:
    def test_bind_and_list(self, free_port):
        port = free_port()

        async def scenario():
            app = _make_app()
            async with _client(app) as client:
                bound = await client.get(
                    "/bind", params={"port": port, "target_addr": "127.0.0.1:9999"}
                )
                listed = await client.get("/list")
            await app.state.registry.close_all()
            return bound, listed

        bound, listed = asyncio.run(scenario())
        assert bound.status_code == 200
        assert bound.text == "ok\n"
        lines = listed.text.splitlines()
        assert len(lines) == 1
        assert lines[0].startswith(f"{port} => 127.0.0.1:9999  ")
        assert listed.text.endswith("\n")

    def test_rebind_keeps_single_line(self, free_port):
        port = free_port()

        async def scenario():
            app = _make_app()
            async with _client(app) as client:
                for target in ("127.0.0.1:1111", "127.0.0.1:2222"):
                    await client.get(
                        "/bind", params={"port": port, "target_addr": target}
                    )
                listed = await client.get("/list")
            await app.state.registry.close_all()
            return listed.text

        text = asyncio.run(scenario())
        assert text.count("\n") == 1
        assert f"{port} => 127.0.0.1:2222" in text

    def test_target_derived_from_caller_ip(self, free_port):
        port = free_port()

        async def scenario():
            app = _make_app()
            async with _client(app, remote_ip="10.0.0.5") as client:
                bound = await client.get(
                    "/bind", params={"port": port, "local_port": "7001"}
                )
            summary = await app.state.registry.get(port)
            await app.state.registry.close_all()
            return bound, summary

        bound, summary = asyncio.run(scenario())
        assert bound.text == "ok\n"
        assert summary.target == "10.0.0.5:7001"

    def test_explicit_target_wins_over_local_port(self, free_port):
        port = free_port()

        async def scenario():
            app = _make_app()
            async with _client(app, remote_ip="10.0.0.5") as client:
                await client.get(
                    "/bind",
                    params={
                        "port": port,
                        "local_port": "7001",
                        "target_addr": "192.168.1.9:22",
                    },
                )
            summary = await app.state.registry.get(port)
            await app.state.registry.close_all()
            return summary

        assert asyncio.run(scenario()).target == "192.168.1.9:22"

    def test_derived_target_can_be_disabled(self, free_port):
        port = free_port()

        async def scenario():
            app = _make_app(ALLOW_DERIVED_TARGET=False)
            async with _client(app, remote_ip="10.0.0.5") as client:
                response = await client.get(
                    "/bind", params={"port": port, "local_port": "7001"}
                )
            return response, await app.state.registry.list()

        response, listing = asyncio.run(scenario())
        assert response.status_code == 400
        assert response.text == "failed, [target_addr required]\n"
        assert listing == []

    def test_missing_target_and_local_port(self, free_port):
        async def scenario():
            app = _make_app()
            async with _client(app) as client:
                return await client.get("/bind", params={"port": free_port()})

        response = asyncio.run(scenario())
        assert response.status_code == 400
        assert response.text.startswith("failed, [")

    def test_malformed_target(self, free_port):
        async def scenario():
            app = _make_app()
            async with _client(app) as client:
                return await client.get(
                    "/bind", params={"port": free_port(), "target_addr": "nohost"}
                )

        response = asyncio.run(scenario())
        assert response.status_code == 400

    def test_missing_port_is_rejected(self):
        async def scenario():
            app = _make_app()
            async with _client(app) as client:
                return await client.get(
                    "/bind", params={"target_addr": "127.0.0.1:9999"}
                )

        assert asyncio.run(scenario()).status_code == 422

    def test_port_in_use_reports_failure(self, free_port):
        port = free_port()

        async def scenario():
            app = _make_app()
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
                blocker.bind(("127.0.0.1", port))
                blocker.listen()
                async with _client(app) as client:
                    response = await client.get(
                        "/bind",
                        params={"port": port, "target_addr": "127.0.0.1:9999"},
                    )
            return response, await app.state.registry.list()

        response, listing = asyncio.run(scenario())
        assert response.status_code == 409
        assert response.text.startswith(f"failed, [cannot listen on port {port}")
        assert listing == []


# =============================================================================
# /unbind
# =============================================================================


class TestUnbindEndpoint:
    def test_unbind_bound_port(self, free_port):
        port = free_port()

        async def scenario():
            app = _make_app()
            async with _client(app) as client:
                await client.get(
                    "/bind", params={"port": port, "target_addr": "127.0.0.1:9999"}
                )
                unbound = await client.get("/unbind", params={"port": port})
                listed = await client.get("/list")
            return unbound, listed

        unbound, listed = asyncio.run(scenario())
        assert unbound.status_code == 200
        assert unbound.text == "ok\n"
        assert listed.text == ""

    def test_unbind_unknown_port(self, free_port):
        async def scenario():
            app = _make_app()
            async with _client(app) as client:
                return await client.get("/unbind", params={"port": free_port()})

        response = asyncio.run(scenario())
        assert response.status_code == 404
        assert response.text == "failed, [not found]\n"


# =============================================================================
# JSON listing
# =============================================================================


class TestBindingsJson:
    def test_json_listing(self, free_port):
        ports = [free_port(), free_port()]

        async def scenario():
            app = _make_app()
            async with _client(app) as client:
                for port in ports:
                    await client.get(
                        "/bind",
                        params={"port": port, "target_addr": "127.0.0.1:9999"},
                    )
                response = await client.get("/api/bindings")
            await app.state.registry.close_all()
            return response.json()

        body = asyncio.run(scenario())
        assert body["count"] == 2
        assert sorted(b["port"] for b in body["bindings"]) == sorted(ports)
        assert all(b["target"] == "127.0.0.1:9999" for b in body["bindings"])
        assert all("last_active" in b for b in body["bindings"])


# =============================================================================
# End to end
# =============================================================================


class TestEndToEnd:
    def test_bind_echo_unbind(self, free_port, exchange):
        port = free_port()

        async def scenario():
            echo = await start_echo_server()
            echo_port = echo.sockets[0].getsockname()[1]
            app = _make_app()
            async with _client(app) as client:
                await client.get(
                    "/bind",
                    params={"port": port, "target_addr": f"127.0.0.1:{echo_port}"},
                )
                reply = await exchange(port, b"hello")
                await client.get("/unbind", params={"port": port})

            try:
                _, writer = await asyncio.open_connection("127.0.0.1", port)
            except ConnectionRefusedError:
                refused = True
            else:
                writer.close()
                refused = False
            echo.close()
            return reply, refused

        reply, refused = asyncio.run(scenario())
        assert reply == b"hello"
        assert refused
