"""
Tests for visual decay of aging job cards.
"""

from datetime import datetime, timedelta

import pytest

from jobboard.decay import NO_DECAY, decay_level, decay_styles, styles_for_days


class TestDecayLevel:
    """Test the piecewise decay curve."""

    @pytest.mark.parametrize("days, level", [
        (0, 0.0),
        (7, 0.0),
        (30, 0.5),
        (60, 0.75),
        (90, 1.0),
        (91, 1.0),
        (1000, 1.0),
    ])
    def test_boundaries(self, days, level):
        assert decay_level(days) == pytest.approx(level)

    def test_just_past_fresh_window(self):
        assert decay_level(8) == pytest.approx(0.5 / 23)

    def test_never_decreases(self):
        levels = [decay_level(d) for d in range(0, 200)]
        assert levels == sorted(levels)

    def test_nan_is_fresh(self):
        assert decay_level(float("nan")) == 0.0


class TestDecayStyles:
    """Test opacity/grayscale for a posting date."""

    def test_fresh_job(self, now):
        styles = decay_styles(now - timedelta(days=3), now=now)
        assert styles.opacity == 1.0
        assert styles.grayscale == 0.0
        assert styles.is_fading is False

    def test_fully_decayed(self, now):
        styles = decay_styles(now - timedelta(days=91), now=now)
        assert styles.opacity == pytest.approx(0.4)
        assert styles.grayscale == pytest.approx(0.6)

    def test_days_old_is_floored(self, now):
        styles = decay_styles(now - timedelta(days=7, hours=23), now=now)
        assert styles.days_old == 7
        assert styles.decay_level == 0.0

    def test_missing_date_never_decays(self, now):
        assert decay_styles(None, now=now) == NO_DECAY

    def test_unparseable_string_never_decays(self, now):
        assert decay_styles("not a date", now=now) == NO_DECAY

    def test_out_of_range_offset_never_decays(self, now):
        assert decay_styles("0001-01-01T00:00:00+05:00", now=now) == NO_DECAY

    def test_iso_string_accepted(self, now):
        posted = (now - timedelta(days=30)).isoformat().replace("+00:00", "Z")
        styles = decay_styles(posted, now=now)
        assert styles.days_old == 30
        assert styles.decay_level == pytest.approx(0.5)

    def test_naive_datetime_read_as_utc(self, now):
        naive = (now - timedelta(days=60)).replace(tzinfo=None)
        assert decay_styles(naive, now=now).days_old == 60

    def test_future_date_is_fresh(self, now):
        styles = decay_styles(now + timedelta(days=5), now=now)
        assert styles.days_old == 0
        assert styles.opacity == 1.0

    def test_values_always_in_range(self):
        for days in range(0, 400, 7):
            styles = styles_for_days(days)
            assert 0.4 <= styles.opacity <= 1.0
            assert 0.0 <= styles.grayscale <= 0.6

    def test_to_dict(self):
        payload = styles_for_days(60).to_dict()
        assert payload == {"opacity": 0.55, "grayscale": 0.45, "decayLevel": 0.75, "daysOld": 60}

    def test_defaults_to_current_time(self):
        assert decay_styles(datetime.now()).days_old == 0
