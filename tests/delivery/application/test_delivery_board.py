"""DeliveryBoardEntry projection and per-role board queries."""

from protean import current_domain

from delivery.authority import actor_fields
from delivery.identity import Actor, Role
from delivery.order.cancellation import CancelOrder
from delivery.order.cleanup import DismissOrder, PurgeOrder
from delivery.order.review import ApproveOrder
from delivery.projections.delivery_board import DeliveryBoardEntry, board_for, dismissed_by

ADMIN = Actor("admin-1", Role.ADMIN)
CUSTOMER = Actor("cust-1", Role.CUSTOMER)
VENDOR = Actor("vendor-1", Role.VENDOR)
RIDER = Actor("rider-1", Role.DELIVERY_PARTNER)


def _entry(order_id):
    return current_domain.repository_for(DeliveryBoardEntry).get(order_id)


class TestProjection:
    def test_placed_order_gets_a_row(self, world):
        world.add_vendor()
        order_id = world.place_order()

        entry = _entry(order_id)
        assert entry.delivery_status == "pending"
        assert entry.item_count == 2
        assert entry.total_amount == 5.90
        assert entry.partner_id is None

    def test_row_follows_dispatch(self, dispatch_ready):
        order_id = dispatch_ready.approved_order()
        dispatch_ready.assign(order_id)

        entry = _entry(order_id)
        assert entry.delivery_status == "assigned"
        assert str(entry.partner_id) == "rider-1"
        assert entry.request_id is not None

    def test_decline_unbinds_the_row(self, dispatch_ready):
        order_id = dispatch_ready.approved_order()
        dispatch_ready.assign(order_id)
        dispatch_ready.respond(order_id, "rejected")

        entry = _entry(order_id)
        assert entry.delivery_status == "approved"
        assert entry.partner_id is None
        assert entry.request_id is None

    def test_purge_removes_the_row(self, world):
        world.add_vendor()
        order_id = world.place_order()
        current_domain.process(CancelOrder(**actor_fields(CUSTOMER), order_id=order_id), asynchronous=False)
        current_domain.process(PurgeOrder(**actor_fields(ADMIN), order_id=order_id), asynchronous=False)

        assert current_domain.repository_for(DeliveryBoardEntry).get_or_none(order_id) is None


class TestBoards:
    def test_each_role_sees_its_own_orders(self, dispatch_ready):
        dispatch_ready.add_vendor("vendor-2")
        mine = dispatch_ready.approved_order()
        dispatch_ready.assign(mine)
        other = dispatch_ready.place_order(customer_id="cust-2", vendor_id="vendor-2")

        assert [str(e.order_id) for e in board_for(CUSTOMER)] == [mine]
        assert [str(e.order_id) for e in board_for(VENDOR)] == [mine]
        assert [str(e.order_id) for e in board_for(RIDER)] == [mine]
        assert {str(e.order_id) for e in board_for(ADMIN)} == {mine, other}
        assert board_for(Actor("svc", Role.SYSTEM)) == []

    def test_most_recently_changed_first(self, world):
        world.add_vendor()
        first = world.place_order()
        second = world.place_order()

        current_domain.process(ApproveOrder(**actor_fields(VENDOR), order_id=first), asynchronous=False)

        assert [str(e.order_id) for e in board_for(VENDOR)] == [first, second]

    def test_dismissed_rows_are_hidden_from_that_actor_only(self, world):
        world.add_vendor()
        order_id = world.place_order()
        current_domain.process(CancelOrder(**actor_fields(CUSTOMER), order_id=order_id), asynchronous=False)

        current_domain.process(DismissOrder(**actor_fields(CUSTOMER), order_id=order_id), asynchronous=False)

        assert dismissed_by(_entry(order_id)) == ["cust-1"]
        assert board_for(CUSTOMER) == []
        assert [str(e.order_id) for e in board_for(CUSTOMER, include_dismissed=True)] == [order_id]
        assert [str(e.order_id) for e in board_for(VENDOR)] == [order_id]
