"""Unit tests for errors.py"""

import logging

from mdsite.errors import ConfigError, Issue, report


def test_config_error_is_value_error():
    assert issubclass(ConfigError, ValueError)


def test_issue_str():
    assert str(Issue("posts/a", "title", "missing")) == "posts/a:title: missing"
    assert str(Issue("posts/a", None, "bad")) == "posts/a: bad"


def test_report_logs_and_collects(caplog):
    issues = []
    with caplog.at_level(logging.WARNING):
        report(issues, "posts/a", "date", "invalid date")
    assert issues == [Issue("posts/a", "date", "invalid date")]
    assert "posts/a:date: invalid date" in caplog.text


def test_report_without_list():
    report(None, "posts/a", None, "only logged")
