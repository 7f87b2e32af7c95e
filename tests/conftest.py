import pytest

from envelope_budget.lib.config import clear_config_cache


@pytest.fixture(autouse=True)
def _default_config(monkeypatch):
    monkeypatch.delenv('ENVBUDGET_CONFIG_DIR', raising=False)
    monkeypatch.delenv('ENVBUDGET_EPSILON', raising=False)
    clear_config_cache()
    yield
    clear_config_cache()
