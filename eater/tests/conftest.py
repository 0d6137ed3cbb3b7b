from __future__ import annotations

from unittest.mock import patch

import pytest

from eater.analytics.store import clear_events
from eater.history.decisions import clear_decisions
from eater.history.exclusions import clear_exclusions
from eater.history.interactions import clear_interactions
from eater.places.catalog import clear_catalog
from eater.places.favorites import clear_favorites
from eater.profile.preferences import clear_preferences
from eater.recommendations.cache import clear_cache
from eater.recommendations.patterns import clear_patterns
from eater.rooms.state import clear_rooms
from eater.tests.fakes import provider_set


@pytest.fixture(autouse=True)
def reset_stores():
    clear_cache()
    clear_catalog()
    clear_favorites()
    clear_interactions()
    clear_decisions()
    clear_exclusions()
    clear_patterns()
    clear_preferences()
    clear_rooms()
    clear_events()
    yield


@pytest.fixture(autouse=True)
def offline_providers():
    """No test ever reaches a real place-search API."""
    with patch("eater.recommendations.aggregator.get_provider_set", return_value=provider_set()), \
            patch("eater.recommendations.retrieval.summarize_place", side_effect=lambda name, raw=None: raw):
        yield
