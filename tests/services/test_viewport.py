"""Tests for viewport intersection geometry."""

from __future__ import annotations

import pytest

from linkpreview.services.viewport import ObservedItem, compute_entries, intersection_ratio


class TestIntersectionRatio:
    """Test the visible fraction computation."""

    def test_fully_visible(self) -> None:
        """Test an item inside the viewport has ratio 1."""
        item = ObservedItem("https://a", top=100, height=50)

        assert intersection_ratio(item, 0, 500, margin=0) == 1.0

    def test_partially_visible_within_margin(self) -> None:
        """Test the margin extends the viewport below its bottom edge."""
        item = ObservedItem("https://a", top=550, height=100)

        assert intersection_ratio(item, 0, 500, margin=100) == pytest.approx(0.5)

    def test_outside(self) -> None:
        """Test an item beyond the expanded viewport has ratio 0."""
        item = ObservedItem("https://a", top=700, height=100)

        assert intersection_ratio(item, 0, 500, margin=100) == 0.0

    def test_above_viewport(self) -> None:
        """Test the margin also extends above the top edge."""
        item = ObservedItem("https://a", top=850, height=100)

        assert intersection_ratio(item, 1000, 500, margin=100) == pytest.approx(0.5)

    def test_zero_height_item(self) -> None:
        """Test a zero-height item is either fully in or out."""
        inside = ObservedItem("https://a", top=200, height=0)
        outside = ObservedItem("https://b", top=900, height=0)

        assert intersection_ratio(inside, 0, 500, margin=0) == 1.0
        assert intersection_ratio(outside, 0, 500, margin=0) == 0.0


class TestComputeEntries:
    """Test intersection entries against the threshold."""

    def test_threshold(self) -> None:
        """Test items below the threshold do not intersect."""
        items = [
            ObservedItem("https://visible", top=0, height=100),
            ObservedItem("https://sliver", top=595, height=100),
            ObservedItem("https://far", top=2000, height=100),
        ]

        entries = {e.url: e for e in compute_entries(items, 0, 500, margin=100, threshold=0.1)}

        assert entries["https://visible"].is_intersecting is True
        assert entries["https://sliver"].intersection_ratio == pytest.approx(0.05)
        assert entries["https://sliver"].is_intersecting is False
        assert entries["https://far"].is_intersecting is False

    def test_zero_threshold_needs_positive_ratio(self) -> None:
        """Test a zero threshold still requires some overlap."""
        items = [ObservedItem("https://far", top=2000, height=100)]

        entries = compute_entries(items, 0, 500, margin=0, threshold=0.0)

        assert entries[0].is_intersecting is False
