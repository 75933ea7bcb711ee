"""Tests for results directory cleaning."""

from bdd_harness.reporting.results_dir import clean_results_dir


def test_removes_everything_but_history(tmp_path):
    results = tmp_path / 'allure-results'
    (results / 'history').mkdir(parents=True)
    (results / 'history' / 'history-trend.json').write_text('[]')
    (results / 'abc-result.json').write_text('{}')
    (results / 'attachments').mkdir()
    (results / 'attachments' / 'shot.png').write_bytes(b'x')

    removed = clean_results_dir(results)

    assert sorted(p.name for p in removed) == ['abc-result.json', 'attachments']
    assert [p.name for p in results.iterdir()] == ['history']
    assert (results / 'history' / 'history-trend.json').exists()


def test_creates_missing_dir_with_history(tmp_path):
    results = tmp_path / 'allure-results'
    assert clean_results_dir(results) == []
    assert (results / 'history').is_dir()
