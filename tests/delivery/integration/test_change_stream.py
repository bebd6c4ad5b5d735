"""Integration tests for the websocket change stream."""

import pytest
from starlette.websockets import WebSocketDisconnect

from delivery.changefeed import get_hub


def _connect(client, token, entity_type, entity_id):
    return client.websocket_connect(f"/changes/ws?token={token}&entity_type={entity_type}&entity_id={entity_id}")


def _token(auth, actor_id, role):
    return auth(actor_id, role)["Authorization"].split(" ", 1)[1]


class TestStreamAdmission:
    def test_missing_token_closes_4001(self, client, dispatch_ready):
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect("/changes/ws?entity_type=customer&entity_id=cust-1"):
                pass
        assert exc.value.code == 4001

    def test_unknown_entity_type_closes_4400(self, client, auth):
        token = _token(auth, "cust-1", "customer")
        with pytest.raises(WebSocketDisconnect) as exc:
            with _connect(client, token, "warehouse", "w-1"):
                pass
        assert exc.value.code == 4400

    def test_foreign_key_closes_4003(self, client, auth):
        token = _token(auth, "cust-1", "customer")
        with pytest.raises(WebSocketDisconnect) as exc:
            with _connect(client, token, "customer", "cust-2"):
                pass
        assert exc.value.code == 4003

    def test_outsider_cannot_watch_order(self, client, auth, dispatch_ready):
        order_id = dispatch_ready.place_order()
        token = _token(auth, "vendor-2", "vendor")
        with pytest.raises(WebSocketDisconnect) as exc:
            with _connect(client, token, "order", order_id):
                pass
        assert exc.value.code == 4003


class TestStreamDelivery:
    def test_customer_receives_change_frames(self, client, auth, dispatch_ready):
        token = _token(auth, "cust-1", "customer")

        with _connect(client, token, "customer", "cust-1") as ws:
            assert ws.receive_json() == {"type": "subscribed", "entity_type": "customer", "entity_id": "cust-1"}

            order_id = dispatch_ready.place_order()

            frame = ws.receive_json()
            assert frame["type"] == "changed"
            assert frame["order_id"] == order_id
            assert frame["change"] == "OrderPlaced"
            assert frame["delivery_status"] == "pending"

    def test_order_watcher_receives_positions(self, client, auth, dispatch_ready):
        order_id = dispatch_ready.out_for_delivery_order()
        token = _token(auth, "cust-1", "customer")

        with _connect(client, token, "order", order_id) as ws:
            ws.receive_json()
            client.post(
                f"/orders/{order_id}/positions",
                json={"latitude": 12.97, "longitude": 77.60},
                headers=auth("rider-1", "delivery_partner"),
            )

            frame = ws.receive_json()
            assert frame["change"] == "PositionReported"

    def test_closing_the_socket_unsubscribes(self, client, auth):
        token = _token(auth, "rider-1", "delivery_partner")

        with _connect(client, token, "partner", "rider-1") as ws:
            ws.receive_json()
            assert get_hub().subscription_count("partner", "rider-1") == 1

        assert get_hub().subscription_count("partner", "rider-1") == 0
