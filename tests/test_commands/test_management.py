"""Tests for ``deputy management``."""

from __future__ import annotations

import json

from deputy.commands.management import preview


class TestPreview:
    def test_short_text_is_kept(self) -> None:
        assert preview("hello") == "hello"

    def test_long_text_is_cut(self) -> None:
        assert preview("x" * 60) == "x" * 50 + "..."


class TestMemo:
    def test_list(self, cli, api) -> None:
        api.add("GET", "/supervise/memo", json=[{"Id": 1, "Content": "Stocktake on Friday"}])
        lines = cli("management", "memo", "list", "--company", "2").stdout.splitlines()
        assert lines[0].split() == ["ID", "CREATED", "CONTENT"]
        assert lines[1].split() == ["1", "-", "Stocktake", "on", "Friday"]
        assert api.requests[0].url.params["company"] == "2"

    def test_add(self, cli, api) -> None:
        api.add("PUT", "/supervise/memo", json={"Id": 11})
        result = cli(
            "management", "memo", "add", "--company", "2", "--content", "Hi all",
            "--location", "2", "--location", "3", "--employee", "9",
        )
        assert result.stdout == "Created memo 11\n"
        assert json.loads(api.requests[0].content) == {
            "strContent": "Hi all",
            "intCompanyId": 2,
            "arrLocation": [2, 3],
            "arrEmployee": [9],
        }

    def test_add_needs_audience(self, cli, api) -> None:
        result = cli("management", "memo", "add", "--company", "2", "--content", "Hi")
        assert result.exit_code == 2
        assert "at least one --location or --employee is required" in result.stderr
        assert api.requests == []


class TestJournal:
    def test_list_json(self, cli, api) -> None:
        api.add("GET", "/supervise/journal", json=[{"Id": 4, "Comment": "late", "Employee": 9}])
        body = json.loads(cli("-o", "json", "management", "journal", "list", "--employee", "9").stdout)
        assert body["items"][0]["Comment"] == "late"

    def test_add(self, cli, api) -> None:
        api.add("POST", "/supervise/journal", json={"Id": 4, "Employee": 9})
        result = cli(
            "management", "journal", "add", "--employee", "9", "--company", "2", "--comment", "Great shift",
        )
        assert result.stdout == "Posted journal 4 for employee 9\n"

    def test_add_blank_comment(self, cli, api) -> None:
        result = cli(
            "management", "journal", "add", "--employee", "9", "--company", "2", "--comment", "  ",
        )
        assert result.exit_code == 2
