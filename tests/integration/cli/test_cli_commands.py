"""Integration tests for the mdsite CLI commands"""

import json

import pytest
from typer.testing import CliRunner

from mdsite.cli.cli import app


runner = CliRunner()


@pytest.fixture(autouse=True)
def chdir_tmp(tmp_path, monkeypatch):
    """Run each command from a clean tmp directory so relative paths are isolated."""
    monkeypatch.chdir(tmp_path)


def test_build_writes_outputs(site_dir, tmp_path):
    """build renders both pipelines into the output directory."""
    out = tmp_path / "dist"
    result = runner.invoke(app, ["build", str(site_dir), "--out-dir", str(out), "--base-url", "https://example.com"])

    assert result.exit_code == 0, result.output
    assert (out / "index.html").exists()
    assert (out / "posts" / "first" / "index.html").exists()
    assert (out / "blog" / "2" / "index.html").exists()
    assert not (out / "posts" / "future").exists()
    api = json.loads((out / "api" / "posts" / "first" / "index.json").read_text())
    assert api["page"]["permalink"] == "https://example.com/posts/first/"
    assert "Built 11 file(s)" in result.output


def test_build_with_workers(site_dir, tmp_path):
    result = runner.invoke(app, ["build", str(site_dir), "--out-dir", str(tmp_path / "out"), "--workers", "3"])
    assert result.exit_code == 0, result.output


def test_build_invalid_site_fails(site_dir, tmp_path):
    (site_dir / "pipelines" / "broken.yml").write_text("engine: {id: mustache}\noutput: {path: x, file: y, ext: z}\n")
    result = runner.invoke(app, ["build", str(site_dir)])
    assert result.exit_code == 1
    assert "Error: Invalid site configuration" in result.output


def test_check_reports_counts(site_dir):
    result = runner.invoke(app, ["check", str(site_dir)])
    assert result.exit_code == 0, result.output
    assert "5 definition(s), 2 pipeline(s), 9 content item(s), 0 issue(s)" in result.output


def test_check_fails_on_issues(site_dir):
    (site_dir / "contents" / "posts" / "bad.md").write_text("---\ntitle: Bad\npublication: someday\n---\n")
    result = runner.invoke(app, ["check", str(site_dir)])
    assert result.exit_code == 1
    assert "posts/bad:publication" in result.output


def test_query_command(site_dir):
    result = runner.invoke(app, [
        "query", str(site_dir), "post",
        "--filter", "{key: title, operator: notEquals, value: Future}",
        "--order-by", "publication:desc",
        "--limit", "2",
    ])
    assert result.exit_code == 0, result.output
    items = json.loads(result.stdout)
    assert [i["title"] for i in items] == ["Third", "Second"]


def test_query_unknown_type(site_dir):
    result = runner.invoke(app, ["query", str(site_dir), "nope"])
    assert result.exit_code == 1
    assert "Unknown content type: nope" in result.output


def test_query_invalid_filter(site_dir):
    result = runner.invoke(app, ["query", str(site_dir), "post", "--filter", "{key: title}"])
    assert result.exit_code == 1
    assert "Invalid --filter" in result.output


def test_query_invalid_order(site_dir):
    result = runner.invoke(app, ["query", str(site_dir), "post", "--order-by", "title:sideways"])
    assert result.exit_code == 1
    assert "Invalid --order-by" in result.output


def test_list_command(site_dir):
    result = runner.invoke(app, ["list", str(site_dir)])
    assert result.exit_code == 0, result.output
    assert "page (default): 2" in result.output
    assert "post: 4" in result.output
    assert "pipeline html -> jinja" in result.output
