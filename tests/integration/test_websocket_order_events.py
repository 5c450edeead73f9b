from __future__ import annotations

import json
import sys
import threading
from pathlib import Path

from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from tabletalk.api.main import app

ORDER_PAYLOAD = {"table_code": "TABLE03", "items": [{"menu_item_id": 1, "quantity": 1}]}


def _receive_messages(websocket, count: int) -> list[dict[str, object]]:
    message_holder: list[str] = []
    error_holder: dict[str, Exception] = {}

    def _receive() -> None:
        try:
            for _ in range(count):
                message_holder.append(websocket.receive_text())
        except Exception as exc:
            error_holder["error"] = exc

    receiver = threading.Thread(target=_receive, daemon=True)
    receiver.start()
    receiver.join(timeout=2.0)
    assert not receiver.is_alive(), "timed out waiting for websocket event"
    assert "error" not in error_holder
    return [json.loads(text) for text in message_holder]


def test_websocket_receives_created_and_updated_orders_in_order() -> None:
    with TestClient(app) as client:
        with client.websocket_connect("/ws?table=TABLE01") as websocket:
            created = client.post(
                "/api/orders",
                json=ORDER_PAYLOAD,
                headers={"X-Request-Id": "req-ws-1"},
            )
            assert created.status_code == 201
            order_id = created.json()["id"]

            updated = client.patch(f"/api/orders/{order_id}", json={"status": "preparing"})
            assert updated.status_code == 200

            first, second = _receive_messages(websocket, 2)

    assert first["type"] == "new_order"
    assert first["order"] == created.json()
    assert first["request_id"] == "req-ws-1"
    assert first["event_id"]
    assert second["type"] == "order_updated"
    assert second["order"]["id"] == order_id
    assert second["order"]["status"] == "preparing"


def test_every_connected_client_receives_each_event() -> None:
    with TestClient(app) as client:
        with client.websocket_connect("/ws") as kitchen, client.websocket_connect("/ws") as table:
            response = client.post("/api/orders", json=ORDER_PAYLOAD)
            assert response.status_code == 201

            kitchen_events = _receive_messages(kitchen, 1)
            table_events = _receive_messages(table, 1)

    assert kitchen_events[0]["order"]["id"] == response.json()["id"]
    assert table_events[0]["order"]["id"] == response.json()["id"]


def test_disconnected_client_does_not_break_broadcast() -> None:
    with TestClient(app) as client:
        with client.websocket_connect("/ws") as staying:
            with client.websocket_connect("/ws"):
                pass

            response = client.post("/api/orders", json=ORDER_PAYLOAD)
            assert response.status_code == 201
            events = _receive_messages(staying, 1)

    assert events[0]["type"] == "new_order"
