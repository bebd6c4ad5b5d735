"""Integration tests for position reports, latest position and directions."""

from datetime import UTC, datetime, timedelta

T0 = datetime(2026, 3, 1, 18, 0, tzinfo=UTC)


def _report(client, auth, order_id, lat, lon, at, partner_id="rider-1"):
    return client.post(
        f"/orders/{order_id}/positions",
        json={"latitude": lat, "longitude": lon, "recorded_at": at.isoformat()},
        headers=auth(partner_id, "delivery_partner"),
    )


class TestPositionReports:
    def test_samples_are_accepted_and_latest_wins(self, client, auth, dispatch_ready):
        order_id = dispatch_ready.out_for_delivery_order()

        for lat, lon, offset in ((12.9710, 77.6010, 10), (12.9730, 77.6030, 30), (12.9720, 77.6020, 20)):
            response = _report(client, auth, order_id, lat, lon, T0 + timedelta(seconds=offset))
            assert response.status_code == 202
            assert response.json() == {"status": "recorded"}

        response = client.get(f"/orders/{order_id}/position", headers=auth("cust-1", "customer"))

        data = response.json()
        assert data["found"] is True
        assert (data["latitude"], data["longitude"]) == (12.9730, 77.6030)
        assert datetime.fromisoformat(data["recorded_at"]) == T0 + timedelta(seconds=30)

    def test_naive_timestamp_keeps_the_feed_readable(self, client, auth, dispatch_ready):
        order_id = dispatch_ready.out_for_delivery_order()
        _report(client, auth, order_id, 12.9710, 77.6010, T0)

        response = client.post(
            f"/orders/{order_id}/positions",
            json={"latitude": 12.9730, "longitude": 77.6030, "recorded_at": "2026-03-01T18:05:00"},
            headers=auth("rider-1", "delivery_partner"),
        )
        assert response.json() == {"status": "recorded"}

        response = client.get(f"/orders/{order_id}/position", headers=auth("cust-1", "customer"))

        assert response.status_code == 200
        data = response.json()
        assert (data["latitude"], data["longitude"]) == (12.9730, 77.6030)
        assert datetime.fromisoformat(data["recorded_at"]) == T0 + timedelta(minutes=5)

    def test_out_of_window_report_is_dropped_not_refused(self, client, auth, dispatch_ready):
        order_id = dispatch_ready.accepted_order()

        response = _report(client, auth, order_id, 12.97, 77.60, T0)

        assert response.status_code == 202
        assert response.json() == {"status": "dropped"}
        position = client.get(f"/orders/{order_id}/position", headers=auth("cust-1", "customer")).json()
        assert position == {
            "order_id": order_id,
            "found": False,
            "latitude": None,
            "longitude": None,
            "recorded_at": None,
        }

    def test_wrong_partner_is_dropped(self, client, auth, dispatch_ready):
        order_id = dispatch_ready.out_for_delivery_order()
        response = _report(client, auth, order_id, 12.97, 77.60, T0, partner_id="rider-2")
        assert response.json() == {"status": "dropped"}

    def test_customers_cannot_report(self, client, auth, dispatch_ready):
        order_id = dispatch_ready.out_for_delivery_order()
        response = client.post(
            f"/orders/{order_id}/positions",
            json={"latitude": 12.97, "longitude": 77.60},
            headers=auth("cust-1", "customer"),
        )
        assert response.status_code == 403

    def test_out_of_range_coordinates(self, client, auth, dispatch_ready):
        order_id = dispatch_ready.out_for_delivery_order()
        response = _report(client, auth, order_id, 123.0, 77.60, T0)
        assert response.status_code == 422

    def test_outsider_cannot_track(self, client, auth, dispatch_ready):
        order_id = dispatch_ready.out_for_delivery_order()
        response = client.get(f"/orders/{order_id}/position", headers=auth("cust-2", "customer"))
        assert response.status_code == 403


class TestDirections:
    def test_customer_leg_starts_at_the_store(self, client, auth, dispatch_ready):
        order_id = dispatch_ready.accepted_order()

        response = client.get(f"/orders/{order_id}/directions", headers=auth("rider-1", "delivery_partner"))

        assert response.status_code == 200
        data = response.json()
        assert data["leg"] == "customer"
        assert data["url"] == (
            "https://www.google.com/maps/dir/?api=1"
            "&origin=12.9756,77.605&destination=12.968,77.6"
            "&travelmode=driving&dir_action=navigate"
        )

    def test_vendor_leg_starts_at_home_without_samples(self, client, auth, dispatch_ready):
        order_id = dispatch_ready.accepted_order()

        response = client.get(
            f"/orders/{order_id}/directions",
            params={"leg": "vendor"},
            headers=auth("rider-1", "delivery_partner"),
        )

        assert "&origin=12.9716,77.5946&destination=12.9756,77.605" in response.json()["url"]

    def test_vendor_leg_starts_at_latest_sample(self, client, auth, dispatch_ready):
        order_id = dispatch_ready.out_for_delivery_order()
        _report(client, auth, order_id, 12.9701, 77.6002, T0)

        response = client.get(
            f"/orders/{order_id}/directions",
            params={"leg": "vendor"},
            headers=auth("admin-1", "admin"),
        )

        assert "&origin=12.9701,77.6002&" in response.json()["url"]

    def test_only_bound_partner_gets_directions(self, client, auth, dispatch_ready):
        order_id = dispatch_ready.accepted_order()
        response = client.get(f"/orders/{order_id}/directions", headers=auth("cust-1", "customer"))
        assert response.status_code == 403

    def test_address_only_destination(self, client, auth, dispatch_ready):
        order_id = dispatch_ready.place_order(delivery_latitude=None, delivery_longitude=None)

        response = client.get(f"/orders/{order_id}/directions", headers=auth("admin-1", "admin"))

        assert "&destination=12%20Residency%20Road%2C%20Bengaluru&" in response.json()["url"]
