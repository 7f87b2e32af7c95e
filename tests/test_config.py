import json
from decimal import Decimal

import pytest

from envelope_budget.config import (
    get_epsilon,
    get_gap_thresholds,
    get_labels,
    get_reduction_tolerance,
    get_variance_thresholds,
)
from envelope_budget.lib.budgets.balance import validate
from envelope_budget.lib.config import clear_config_cache, get_config_value, get_engine_config, load_config


def test_shipped_defaults():
    thresholds = get_gap_thresholds()

    assert get_epsilon() == Decimal('0.01')
    assert get_reduction_tolerance() == Decimal('0.01')
    assert thresholds.attention_ratio == Decimal('-0.20')
    assert thresholds.on_track_ratio == Decimal('0.05')
    assert get_variance_thresholds().absolute == Decimal('1.00')
    assert get_labels('waterfall', 'tier_names')['1'] == 'Essential Bills'


def test_epsilon_override(monkeypatch):
    monkeypatch.setenv('ENVBUDGET_EPSILON', '0.5')

    assert get_epsilon() == Decimal('0.5')
    assert validate(100, Decimal('100.30')).is_balanced


@pytest.mark.parametrize('raw', ['abc', '-1', '0', 'nan'])
def test_bad_epsilon_override_raises(monkeypatch, raw):
    monkeypatch.setenv('ENVBUDGET_EPSILON', raw)

    with pytest.raises(ValueError):
        get_epsilon()


def test_config_dir_override(monkeypatch, tmp_path):
    engine = get_engine_config()
    custom = json.loads(json.dumps(engine))
    custom['gap_analysis']['attention_ratio'] = '-0.50'
    (tmp_path / 'engine.json').write_text(json.dumps(custom), encoding='utf-8')

    monkeypatch.setenv('ENVBUDGET_CONFIG_DIR', str(tmp_path))
    clear_config_cache()

    assert get_gap_thresholds().attention_ratio == Decimal('-0.50')


def test_unknown_config_file():
    with pytest.raises(FileNotFoundError):
        load_config('does_not_exist')
    assert get_config_value('does_not_exist', 'anything', default='fallback') == 'fallback'
    assert get_config_value('engine', 'tolerances', 'missing') is None


def test_mutating_loaded_config_does_not_leak():
    config = get_engine_config()
    config['tolerances']['epsilon'] = '5'
    get_labels('waterfall', 'tier_names')['1'] = 'Changed'

    assert get_epsilon() == Decimal('0.01')
    assert get_config_value('engine', 'tolerances', 'epsilon') == '0.01'
    assert get_labels('waterfall', 'tier_names')['1'] == 'Essential Bills'
