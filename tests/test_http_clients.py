"""
Tests for the camera, oracle and car clients against local HTTP servers.
"""

import asyncio

import cv2
import numpy as np
from aiohttp import web
from aiohttp import test_utils

from car_nav_module.core.config import CommunicationConfig, EndpointConfig
from car_nav_module.core.interfaces import DriveCmd, Quadrant
from car_nav_module.communication.actuator_client import ActuatorClient
from car_nav_module.communication.http_client import HttpEndpointClient
from car_nav_module.communication.oracle_client import OracleClient
from car_nav_module.vision.camera_manager import (
    CameraManager,
    HttpCameraProvider,
    decode_jpeg,
)

from conftest import run


async def serve(routes, scenario):
    """Start a server with the given routes and run ``scenario(server)`` against it."""
    app = web.Application()
    app.add_routes(routes)
    server = test_utils.TestServer(app)
    await server.start_server()
    try:
        return await scenario(server)
    finally:
        await server.close()


def jpeg_bytes(height=48, width=64):
    image = np.full((height, width, 3), 127, dtype=np.uint8)
    ok, encoded = cv2.imencode(".jpg", image)
    assert ok
    return encoded.tobytes()


class TestHttpEndpointClient:

    def test_sends_authorization_header(self):
        seen = {}

        async def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return web.Response(text="ok")

        async def scenario(server):
            client = HttpEndpointClient(EndpointConfig(str(server.make_url("/x")), "983149"))
            return await client.request("GET")

        body = run(serve([web.get("/x", handler)], scenario))

        assert body == b"ok"
        assert seen["auth"] == "983149"

    def test_no_auth_header_without_token(self):
        seen = {}

        async def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return web.Response(text="ok")

        async def scenario(server):
            client = HttpEndpointClient(EndpointConfig(str(server.make_url("/x"))))
            return await client.request("GET")

        run(serve([web.get("/x", handler)], scenario))

        assert seen["auth"] is None

    def test_error_status_returns_none(self):
        async def handler(request):
            return web.Response(status=503)

        async def scenario(server):
            client = HttpEndpointClient(EndpointConfig(str(server.make_url("/x"))))
            return await client.request("GET")

        assert run(serve([web.get("/x", handler)], scenario)) is None

    def test_slow_endpoint_times_out(self):
        async def handler(request):
            await asyncio.sleep(1.0)
            return web.Response(text="late")

        async def scenario(server):
            client = HttpEndpointClient(
                EndpointConfig(str(server.make_url("/slow"))), timeout_sec=0.2
            )
            started = asyncio.get_running_loop().time()
            body = await client.request("GET")
            return body, asyncio.get_running_loop().time() - started

        body, elapsed = run(serve([web.get("/slow", handler)], scenario))

        assert body is None
        assert elapsed < 0.9

    def test_unreachable_endpoint_returns_none(self):
        client = HttpEndpointClient(
            EndpointConfig("http://127.0.0.1:1/frame"), timeout_sec=1.0
        )
        assert run(client.request("GET")) is None


class TestCameras:

    def test_decode_jpeg(self):
        frame = decode_jpeg(jpeg_bytes(48, 64))
        assert frame.shape == (48, 64, 3)
        assert decode_jpeg(b"not a jpeg") is None
        assert decode_jpeg(b"") is None

    def test_camera_provider_fetches_frame(self):
        async def handler(request):
            return web.Response(body=jpeg_bytes(48, 64), content_type="image/jpeg")

        async def scenario(server):
            provider = HttpCameraProvider(
                "camera1", EndpointConfig(str(server.make_url("/frame")), "1")
            )
            return await provider.get_frame()

        frame = run(serve([web.get("/frame", handler)], scenario))

        assert frame.shape == (48, 64, 3)

    def test_bad_image_is_no_frame(self):
        async def handler(request):
            return web.Response(body=b"\x00\x01garbage", content_type="image/jpeg")

        async def scenario(server):
            provider = HttpCameraProvider(
                "camera1", EndpointConfig(str(server.make_url("/frame")))
            )
            return await provider.get_frame()

        assert run(serve([web.get("/frame", handler)], scenario)) is None

    def test_frames_keep_camera_order(self):
        async def small(request):
            return web.Response(body=jpeg_bytes(48, 64), content_type="image/jpeg")

        async def broken(request):
            return web.Response(status=500)

        async def large(request):
            return web.Response(body=jpeg_bytes(96, 128), content_type="image/jpeg")

        async def scenario(server):
            manager = CameraManager([
                HttpCameraProvider("camera1", EndpointConfig(str(server.make_url("/large")))),
                HttpCameraProvider("camera2", EndpointConfig(str(server.make_url("/broken")))),
                HttpCameraProvider("camera3", EndpointConfig(str(server.make_url("/small")))),
            ])
            return await manager.get_frames()

        routes = [
            web.get("/small", small),
            web.get("/broken", broken),
            web.get("/large", large),
        ]
        frames = run(serve(routes, scenario))

        assert frames[0].shape[:2] == (96, 128)
        assert frames[1] is None
        assert frames[2].shape[:2] == (48, 64)


class TestOracleOverHttp:

    def test_json_object_response(self, tracker):
        seen = {}

        async def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return web.json_response({"quadrant": "Q3"})

        async def scenario(server):
            config = CommunicationConfig(
                oracle=EndpointConfig(str(server.make_url("/quadrant")), "606545")
            )
            client = OracleClient(config, tracker)
            return await client.poll_if_due(now=0.0)

        target = run(serve([web.get("/quadrant", handler)], scenario))

        assert target == Quadrant.BOTTOM_LEFT
        assert seen["auth"] == "606545"


class TestActuatorClient:

    def test_put_drive_command(self):
        seen = {}

        async def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            seen["content_type"] = request.content_type
            seen["body"] = await request.json()
            return web.Response(status=200)

        async def scenario(server):
            config = CommunicationConfig(
                car=EndpointConfig(str(server.make_url("/")), "374744")
            )
            return await ActuatorClient(config).send_command(DriveCmd(-0.2, True))

        ok = run(serve([web.put("/", handler)], scenario))

        assert ok is True
        assert seen["auth"] == "374744"
        assert seen["content_type"] == "application/json"
        assert seen["body"] == {"speed": -0.2, "flip": True}

    def test_rejected_command(self):
        async def handler(request):
            return web.Response(status=400)

        async def scenario(server):
            config = CommunicationConfig(car=EndpointConfig(str(server.make_url("/"))))
            client = ActuatorClient(config)
            ok = await client.send_command(DriveCmd(0.5, False))
            return ok, client.statistics

        ok, stats = run(serve([web.put("/", handler)], scenario))

        assert ok is False
        assert stats == {"commands_sent": 0, "failures": 1}
