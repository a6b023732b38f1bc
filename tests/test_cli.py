import json

import pytest

from insurdash import cli
from insurdash.cli import _default_log_level, main
from insurdash.config import config


@pytest.fixture
def data_file(tmp_path, raw_periods):
    path = tmp_path / 'insurance_data.json'
    path.write_text(json.dumps(raw_periods, ensure_ascii=False), encoding='utf-8')
    return str(path)


def test_kpi_table(data_file, capsys):
    assert main(['--data', data_file, '--period', '2025-W03']) == 0
    out = capsys.readouterr().out
    assert '边际贡献率' in out
    assert '环比 2025年第2周' in out


def test_csv_output(data_file, capsys):
    assert main(['--data', data_file, '--period', '2025-W03', '--types', '非营业客车', '--format', 'csv']) == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 2
    assert lines[0].startswith('业务线ID,业务线名称,分析模式,当前周期')


def test_json_output(data_file, capsys):
    assert main(['--data', data_file, '--period', '2025-W03', '--mode', 'periodOverPeriod', '--format', 'json']) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload['analysis_mode'] == 'periodOverPeriod'
    assert payload['current_metrics']['premium_written'] == 350


def test_same_comparison_period_exits_2(data_file, capsys):
    assert main(['--data', data_file, '--period', '2025-W03', '--compare', '2025-W03']) == 2
    assert 'cannot be the same' in capsys.readouterr().err


def test_unknown_period_exits_2(data_file):
    assert main(['--data', data_file, '--period', '1999-W01']) == 2


def test_missing_file_exits_1(tmp_path):
    assert main(['--data', str(tmp_path / 'missing.json'), '--period', 'P1']) == 1


def test_debug_mode_sets_default_log_level(monkeypatch):
    monkeypatch.setitem(config._app_config, 'ENABLE_DEBUG_MODE', True)
    assert _default_log_level() == 'DEBUG'

    monkeypatch.setitem(config._app_config, 'ENABLE_DEBUG_MODE', False)
    monkeypatch.setitem(config._app_config, 'LOG_LEVEL', 'WARNING')
    assert _default_log_level() == 'WARNING'


def test_postgres_run_releases_engine(monkeypatch, periods, capsys):
    monkeypatch.setitem(config._app_config, 'DATA_SOURCE', 'postgres')
    monkeypatch.setattr(cli, 'check_db_connection', lambda: (True, None))
    monkeypatch.setattr(cli, 'load_periods', lambda: periods)
    released = []
    monkeypatch.setattr(cli, 'reset_db_engine', lambda: released.append(True))

    assert main(['--period', '2025-W03', '--format', 'json']) == 0
    assert released == [True]
