"""
Pytest configuration and fixtures for vis_format tests.
"""

import pytest
import pandas as pd
import arrow
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from src.vis_format import (
    DateFormatter,
    EngineContext,
    FormattingEngine,
    MomentDateFormatter,
    OperatorPipeline,
    SpecialValueResolver,
    extract_binding,
)

# 2023-12-24 18:30:00 UTC (a Sunday)
CHRISTMAS_EVE = 1703442600


@pytest.fixture
def utc_context():
    """Engine context pinned to UTC so date output does not depend on the host."""
    return EngineContext(
        user='admin',
        login_required=True,
        instance=42,
        language='en',
        date_format='DD.MM.YYYY',
        timezone='UTC'
    )


@pytest.fixture
def sample_states():
    """
    Fixture providing live state values keyed by state reference.

    Returns:
        Dictionary like the state map of a running installation
    """
    return {
        'hm-rpc.0.temp.val': 21.456,
        'hm-rpc.0.temp.ts': CHRISTMAS_EVE * 1000,
        'hm-rpc.0.limit.val': 20,
        'hm-rpc.0.level.val': 3,
        'hm-rpc.0.state.val': 'abc',
        'hm-rpc.0.config.val': '{"mode": {"name": "eco"}, "targets": [18, 21]}',
        'hm-rpc.0.uptime.val': 3725,
    }


@pytest.fixture
def widget():
    """Widget record as stored in a view."""
    return {
        'tpl': 'tplValueFloat',
        'data': {'oid': 'hm-rpc.0', 'name': 'Thermostat'},
    }


@pytest.fixture
def widget_data():
    """Active widget data record."""
    return {'oid': 'hm-rpc.0', 'name': 'Living room'}


@pytest.fixture
def engine(utc_context, sample_states):
    """Formatting engine over the sample states."""
    return FormattingEngine(utc_context, states=sample_states)


class CountingParser:
    """Binding parser stub that counts calls."""

    def __init__(self, parser=extract_binding):
        self.parser = parser
        self.calls = 0

    def __call__(self, template):
        self.calls += 1
        return self.parser(template)


@pytest.fixture
def counting_parser():
    """Instrumented parser stub."""
    return CountingParser()


@pytest.fixture
def fixed_clock():
    """Clock standing at 2023-12-24 12:00 UTC."""
    return lambda: arrow.get(2023, 12, 24, 12, 0)


@pytest.fixture
def pipeline(utc_context, fixed_clock):
    """Operator pipeline with UTC formatters and a deterministic random source."""
    return OperatorPipeline(
        SpecialValueResolver(utc_context),
        date_formatter=DateFormatter('DD.MM.YYYY', 'UTC'),
        moment_date_formatter=MomentDateFormatter('DD.MM.YYYY', 'UTC', clock=fixed_clock),
        random_source=lambda: 0.5
    )


@pytest.fixture
def state_snapshots():
    """
    Fixture providing state snapshots over time, one row per sample.

    Returns:
        DataFrame with one column per state reference
    """
    data = {
        'time': [0, 6, 12],
        'hm-rpc.0.temp.val': [20.04, None, 22.0],
        'hm-rpc.0.limit.val': [21, 21, 21],
    }
    return pd.DataFrame(data).set_index('time')
