"""Tests for nearest-partner selection."""

from datetime import UTC, datetime, timedelta

import pytest

from delivery.dispatch.selection import Candidate, great_circle_km, select_nearest

STORE = (12.9756, 77.6050)
EPOCH = datetime(2025, 1, 1, tzinfo=UTC)


def _candidate(partner_id, latitude, longitude, registered_days_ago=0):
    return Candidate(
        partner_id=partner_id,
        latitude=latitude,
        longitude=longitude,
        created_at=EPOCH - timedelta(days=registered_days_ago),
    )


class TestGreatCircle:
    def test_zero_for_same_point(self):
        assert great_circle_km(*STORE, *STORE) == 0.0

    def test_one_degree_of_latitude(self):
        assert great_circle_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(111.19, abs=0.01)

    def test_symmetric(self):
        there = great_circle_km(12.97, 77.59, 13.02, 77.65)
        back = great_circle_km(13.02, 77.65, 12.97, 77.59)
        assert there == pytest.approx(back)


class TestSelectNearest:
    def test_closest_candidate_wins(self):
        selection = select_nearest(
            STORE,
            [
                _candidate("far", 13.0500, 77.6000),
                _candidate("near", 12.9800, 77.6050),
            ],
        )
        assert selection.partner_id == "near"
        assert selection.distance_km == pytest.approx(0.489, abs=0.01)

    def test_tie_goes_to_earliest_registration(self):
        selection = select_nearest(
            STORE,
            [
                _candidate("newer", 12.9800, 77.6050, registered_days_ago=1),
                _candidate("older", 12.9800, 77.6050, registered_days_ago=30),
            ],
        )
        assert selection.partner_id == "older"

    def test_excluded_partners_are_skipped(self):
        selection = select_nearest(
            STORE,
            [
                _candidate("declined", 12.9760, 77.6050),
                _candidate("other", 13.0000, 77.6000),
            ],
            excluded={"declined"},
        )
        assert selection.partner_id == "other"

    def test_empty_pool_returns_none(self):
        assert select_nearest(STORE, []) is None

    def test_everyone_excluded_returns_none(self):
        assert select_nearest(STORE, [_candidate("only", 12.98, 77.60)], excluded={"only"}) is None

    def test_radius_limit(self):
        candidates = [_candidate("across-town", 13.1000, 77.6000)]
        assert select_nearest(STORE, candidates, max_radius_km=5) is None
        assert select_nearest(STORE, candidates, max_radius_km=0).partner_id == "across-town"
