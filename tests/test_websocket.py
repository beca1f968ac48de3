"""
==============================================================================
Scanner WebSocket Tests
==============================================================================

Tests for the /ws/scan live scanning protocol.

==============================================================================
"""

import base64

from fastapi.testclient import TestClient

from inventory_scanner.core.exceptions import DeviceUnavailable
from inventory_scanner.detection import LinearCode, Symbology


class TestScannerWebSocket:
    """Tests for live scanning sessions."""

    def test_start_and_detect(self, fake_client: TestClient, linear_reader):
        """Test streaming detections are pushed to the client."""
        with fake_client.websocket_connect("/ws/scan") as ws:
            ws.send_json({"type": "start"})
            assert ws.receive_json() == {"type": "started"}

            linear_reader.emit(LinearCode("ITEM-42", Symbology.CODE_128))
            message = ws.receive_json()

            assert message["type"] == "detection"
            assert message["result"]["barcode"] == "ITEM-42"
            assert message["result"]["format"] == "CODE_128"
            assert "item" not in message

            ws.send_json({"type": "close"})

        assert linear_reader.release_calls >= 1

    def test_record_detections(self, fake_client: TestClient, linear_reader):
        """Test detections are stored as camera scans when recording."""
        with fake_client.websocket_connect("/ws/scan") as ws:
            ws.send_json({"type": "start", "record": True})
            assert ws.receive_json()["type"] == "started"

            linear_reader.emit(LinearCode("96385074", Symbology.EAN_8))
            message = ws.receive_json()

            assert message["item"]["name"] == "Salted Crackers"
            assert message["item"]["source"] == "camera"
            ws.send_json({"type": "close"})

        items = fake_client.get("/api/items").json()["data"]
        assert [i["barcode"] for i in items] == ["96385074"]

    def test_device_unavailable(self, fake_client: TestClient, linear_reader):
        """Test a denied camera is reported without streaming."""
        linear_reader.init_error = DeviceUnavailable("Permission denied")

        with fake_client.websocket_connect("/ws/scan") as ws:
            ws.send_json({"type": "start", "device": 3})
            message = ws.receive_json()
            ws.send_json({"type": "close"})

        assert message["type"] == "error"
        assert message["code"] == "DEVICE_UNAVAILABLE"
        assert linear_reader.start_calls == 0

    def test_stop(self, fake_client: TestClient, linear_reader):
        """Test stop ends streaming but keeps the session open."""
        with fake_client.websocket_connect("/ws/scan") as ws:
            ws.send_json({"type": "start"})
            ws.receive_json()
            ws.send_json({"type": "stop"})
            assert ws.receive_json() == {"type": "stopped"}
            ws.send_json({"type": "close"})

        assert linear_reader.stop_calls == 1

    def test_frame(self, fake_client: TestClient, matrix_decoder, blank_png):
        """Test a client frame is run through one-shot detection."""
        matrix_decoder.payload = "ITEM-42"
        frame = base64.b64encode(blank_png).decode()

        with fake_client.websocket_connect("/ws/scan") as ws:
            ws.send_json({"type": "frame", "frame": frame})
            message = ws.receive_json()
            ws.send_json({"type": "close"})

        assert message["type"] == "result"
        assert message["result"]["success"] is True
        assert message["result"]["format"] == "QR_CODE"

    def test_unreadable_frame(self, fake_client: TestClient):
        """Test a corrupt frame yields a failed result, not an error."""
        with fake_client.websocket_connect("/ws/scan") as ws:
            ws.send_json({"type": "frame", "frame": "@@@"})
            message = ws.receive_json()
            ws.send_json({"type": "close"})

        assert message["result"] == {
            "success": False,
            "barcode": None,
            "format": None,
            "error": "Could not load image",
        }

    def test_missing_frame(self, fake_client: TestClient):
        with fake_client.websocket_connect("/ws/scan") as ws:
            ws.send_json({"type": "frame"})
            message = ws.receive_json()
            ws.send_json({"type": "close"})

        assert message["code"] == "INVALID_MESSAGE"

    def test_unknown_message(self, fake_client: TestClient):
        """Test unknown message types are reported."""
        with fake_client.websocket_connect("/ws/scan") as ws:
            ws.send_json({"type": "zoom"})
            message = ws.receive_json()
            ws.send_json({"type": "close"})

        assert message["type"] == "error"
        assert message["code"] == "UNKNOWN_MESSAGE"

    def test_disconnect_cleans_up(self, fake_client: TestClient, linear_reader):
        """Test dropping the connection releases the camera."""
        with fake_client.websocket_connect("/ws/scan") as ws:
            ws.send_json({"type": "start"})
            ws.receive_json()

        assert linear_reader.release_calls >= 1
