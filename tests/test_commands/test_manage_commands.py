"""Tests for the write commands of employees, locations, timesheets, rosters, leave and webhooks."""

from __future__ import annotations

import json

import pytest


def _body(request) -> dict:
    return json.loads(request.content)


class TestEmployees:
    def test_add_text(self, cli, api) -> None:
        api.add("POST", "/supervise/employee", json={"Id": 9, "FirstName": "Ada", "LastName": "Lovelace"})
        result = cli(
            "employees", "add", "--first-name", "Ada", "--last-name", "Lovelace", "--company", "1",
        )
        assert result.exit_code == 0
        assert result.stdout == "Created employee 9: Ada Lovelace\n"
        assert _body(api.requests[0]) == {"strFirstName": "Ada", "strLastName": "Lovelace", "intCompany": 1}

    def test_add_bad_start_date(self, cli, api) -> None:
        result = cli(
            "employees", "add", "--first-name", "Ada", "--last-name", "L", "--company", "1",
            "--start-date", "01/02/2024",
        )
        assert result.exit_code == 2
        assert "invalid --start-date date" in result.stderr
        assert api.requests == []

    def test_update_json(self, cli, api) -> None:
        api.add("POST", "/resource/Employee/9", json={"Id": 9, "Email": "ada@example.com"})
        result = cli("-o", "json", "employees", "update", "9", "--email", "ada@example.com")
        assert json.loads(result.stdout)["Email"] == "ada@example.com"
        assert _body(api.requests[0]) == {"strEmail": "ada@example.com"}

    def test_update_nothing(self, cli, api) -> None:
        result = cli("employees", "update", "9")
        assert result.exit_code == 2
        assert "nothing to update" in result.stderr

    def test_terminate(self, cli, api) -> None:
        api.add("POST", "/supervise/employee/9/terminate")
        result = cli("employees", "terminate", "9", "--date", "2024-03-01", "--yes")
        assert result.stdout == "Employee 9 terminated as of 2024-03-01\n"

    def test_terminate_json_ack(self, cli, api) -> None:
        api.add("POST", "/supervise/employee/9/terminate")
        result = cli("-o", "json", "employees", "terminate", "9", "--date", "2024-03-01")
        assert json.loads(result.stdout) == {
            "Id": 9,
            "Terminated": True,
            "TerminationDate": "2024-03-01",
        }

    def test_terminate_declined(self, cli, api, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("typer.confirm", lambda *args, **kwargs: False)
        result = cli("employees", "terminate", "9", "--date", "2024-03-01")
        assert result.exit_code == 1
        assert api.requests == []

    def test_reactivate(self, cli, api) -> None:
        api.add("POST", "/resource/Employee/9", json={"Id": 9, "Active": True})
        assert cli("employees", "reactivate", "9").stdout == "Employee 9 reactivated\n"

    def test_invite(self, cli, api) -> None:
        api.add("POST", "/supervise/employee/9/invite")
        result = cli("-o", "json", "employees", "invite", "9")
        assert json.loads(result.stdout) == {"Id": 9, "Invited": True}

    def test_delete(self, cli, api) -> None:
        api.add("DELETE", "/supervise/employee/9")
        assert cli("employees", "delete", "9", "-y").stdout == "Employee 9 deleted\n"

    def test_assign_location(self, cli, api) -> None:
        api.add("POST", "/supervise/employee/9/location")
        result = cli("employees", "assign-location", "9", "--location", "2")
        assert result.stdout == "Employee 9 assigned to location 2\n"

    def test_remove_location_invalid(self, cli, api) -> None:
        result = cli("employees", "remove-location", "9", "--location", "0")
        assert result.exit_code == 2
        assert "invalid location ID: 0" in result.stderr

    def test_add_unavailability(self, cli, api) -> None:
        api.add("POST", "/resource/EmployeeAvailability", json={"Id": 31, "Employee": 9})
        result = cli(
            "employees", "add-unavailability", "9",
            "--start-date", "2024-04-01", "--end-date", "2024-04-02", "--comment", "exams",
        )
        assert result.stdout == "Added unavailability 31 for employee 9\n"
        assert _body(api.requests[0]) == {
            "intEmployee": 9,
            "strDateStart": "2024-04-01",
            "strDateEnd": "2024-04-02",
            "strComment": "exams",
        }


class TestLocations:
    def test_add(self, cli, api) -> None:
        api.add("POST", "/supervise/location", json={"Id": 5, "CompanyName": "Store"})
        result = cli("locations", "add", "--name", "Store", "--timezone", "Australia/Sydney")
        assert result.stdout == "Created location 5: Store\n"
        assert _body(api.requests[0]) == {"strCompanyName": "Store", "strTimezone": "Australia/Sydney"}

    def test_update_uses_put(self, cli, api) -> None:
        api.add("PUT", "/supervise/location/5", json={"Id": 5, "CompanyName": "Shop"})
        result = cli("locations", "update", "5", "--name", "Shop")
        assert result.stdout == "Updated location 5: Shop\n"
        assert api.requests[0].method == "PUT"

    def test_archive_json(self, cli, api) -> None:
        api.add("POST", "/supervise/location/5/archive")
        result = cli("-o", "json", "locations", "archive", "5")
        assert json.loads(result.stdout) == {"Id": 5, "Archived": True}

    def test_delete_declined(self, cli, api, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("typer.confirm", lambda *args, **kwargs: False)
        assert cli("locations", "delete", "5").exit_code == 1
        assert api.requests == []

    def test_settings_text_sorted(self, cli, api) -> None:
        api.add(
            "GET",
            "/supervise/location/5/settings",
            json={"Id": 5, "Settings": {"WEEK_START": 1, "CURRENCY": "AUD"}},
        )
        assert cli("locations", "settings", "5").stdout.splitlines() == [
            "Location 5 Settings:",
            "  CURRENCY: AUD",
            "  WEEK_START: 1",
        ]

    def test_settings_update(self, cli, api) -> None:
        api.add("POST", "/supervise/location/5/settings")
        result = cli("locations", "settings-update", "5", "--settings", '{"WEEK_START": 2}')
        assert result.stdout == "Updated settings for location 5\n"
        assert _body(api.requests[0]) == {"arrSettings": {"WEEK_START": 2}}

    @pytest.mark.parametrize(
        ("value", "message"),
        [
            ("{oops", "invalid --settings JSON"),
            ("[1]", "invalid --settings: expected a JSON object"),
            ("{}", "invalid --settings: no settings given"),
        ],
    )
    def test_settings_update_rejects(self, cli, api, value: str, message: str) -> None:
        result = cli("locations", "settings-update", "5", "--settings", value)
        assert result.exit_code == 2
        assert message in result.stderr
        assert api.requests == []


class TestTimesheets:
    def test_clock_in(self, cli, api) -> None:
        api.add("POST", "/supervise/timesheet/start", json={"Id": 50, "Employee": 3})
        result = cli("timesheets", "clock-in", "-e", "3")
        assert result.stdout == "Clocked in employee 3 (timesheet 50)\n"

    def test_clock_out_by_timesheet(self, cli, api) -> None:
        api.add("POST", "/supervise/timesheet/stop")
        result = cli("-o", "json", "timesheets", "clock-out", "--timesheet", "50")
        assert json.loads(result.stdout) == {"Id": 50, "Employee": 0}
        assert _body(api.requests[0]) == {"intTimesheetId": 50}

    def test_clock_out_needs_target(self, cli, api) -> None:
        result = cli("timesheets", "clock-out")
        assert result.exit_code == 2
        assert "either --timesheet or --employee is required" in result.stderr
        assert api.requests == []

    def test_breaks(self, cli, api) -> None:
        api.add("POST", "/supervise/timesheet/pause")
        api.add("POST", "/supervise/timesheet/resume")
        assert cli("timesheets", "start-break", "-t", "50").stdout == "Break started on timesheet 50\n"
        result = cli("-o", "json", "timesheets", "end-break", "-e", "3")
        assert json.loads(result.stdout) == {"Status": "ended", "Employee": 3}

    def test_update_cost(self, cli, api) -> None:
        api.add("POST", "/resource/Timesheet/50", json={"Id": 50, "Cost": 12.5})
        result = cli("timesheets", "update", "50", "--cost", "12.5")
        assert result.stdout == "Updated timesheet 50 (cost: 12.50)\n"
        assert _body(api.requests[0]) == {"Cost": 12.5}

    def test_update_negative_cost(self, cli, api) -> None:
        result = cli("timesheets", "update", "50", "--cost", "-1")
        assert result.exit_code == 2
        assert api.requests == []

    def test_list_pay_rules_pages_client_side(self, cli, api) -> None:
        rules = [{"Id": n, "PayTitle": f"Rule {n}", "HourlyRate": 25} for n in (1, 2, 3)]
        api.add("POST", "/resource/PayRules/QUERY", json=rules)
        result = cli("-o", "json", "timesheets", "list-pay-rules", "--offset", "1", "--limit", "1")
        body = json.loads(result.stdout)
        assert [item["Id"] for item in body["items"]] == [2]
        assert (body["limit"], body["offset"]) == (1, 1)

    def test_list_pay_rules_rate_filter(self, cli, api) -> None:
        api.add("POST", "/resource/PayRules/QUERY", json=[])
        cli("timesheets", "list-pay-rules", "--hourly-rate", "30")
        assert _body(api.requests[0])["search"]["s1"] == {
            "field": "HourlyRate",
            "type": "eq",
            "data": 30.0,
        }

    def test_select_pay_rule(self, cli, api) -> None:
        api.add("POST", "/resource/TimesheetPayReturn/QUERY", json=[{"Id": 70, "Timesheet": 5}])
        api.add("GET", "/supervise/timesheet/5", json={"Id": 5, "TotalTime": 7.5})
        api.add("POST", "/resource/PayRules/QUERY", json=[{"Id": 304, "HourlyRate": 30.0}])
        api.add(
            "POST",
            "/resource/TimesheetPayReturn/70",
            json={"Id": 70, "Timesheet": 5, "PayRule": 304, "Cost": 225.0},
        )
        api.add("POST", "/resource/Timesheet/5", json={"Id": 5})
        result = cli("timesheets", "select-pay-rule", "5", "--pay-rule", "304")
        assert result.exit_code == 0
        assert result.stdout == "Assigned pay rule 304 to timesheet 5 (total: $225.00)\n"

    def test_select_pay_rule_without_pay_return(self, cli, api) -> None:
        api.add("POST", "/resource/TimesheetPayReturn/QUERY", json=[])
        result = cli("timesheets", "select-pay-rule", "5", "--pay-rule", "304")
        assert result.exit_code == 1
        assert "no pay return found for timesheet 5" in result.stderr


class TestRosters:
    def test_create(self, cli, api) -> None:
        api.add("POST", "/supervise/roster", json={"Id": 80, "Employee": 3})
        result = cli(
            "rosters", "create", "--employee", "3", "--opunit", "2",
            "--start-time", "1704067200", "--end-time", "1704096000", "--publish",
        )
        assert result.stdout == "Created roster 80\n"
        assert _body(api.requests[0]) == {
            "intEmployeeId": 3,
            "intOpunitId": 2,
            "intStartTimestamp": 1704067200,
            "intEndTimestamp": 1704096000,
            "blnPublish": True,
        }

    def test_create_end_before_start(self, cli, api) -> None:
        result = cli(
            "rosters", "create", "--employee", "3", "--opunit", "2",
            "--start-time", "1704096000", "--end-time", "1704067200",
        )
        assert result.exit_code == 2
        assert "--end-time must be after --start-time" in result.stderr

    def test_publish_json(self, cli, api) -> None:
        api.add("POST", "/supervise/roster/publish")
        result = cli(
            "-o", "json", "rosters", "publish",
            "--from-date", "2024-01-01", "--to-date", "2024-01-07", "--location", "2",
        )
        assert json.loads(result.stdout) == {
            "Published": True,
            "FromDate": "2024-01-01",
            "ToDate": "2024-01-07",
            "Location": 2,
        }

    def test_copy_text(self, cli, api) -> None:
        api.add("POST", "/supervise/roster/copy")
        result = cli(
            "rosters", "copy", "--from-date", "2024-01-01", "--to-date", "2024-01-07", "--location", "2",
        )
        assert result.stdout == "Roster copied from 2024-01-01 to 2024-01-07\n"

    def test_discard_reversed_range(self, cli, api) -> None:
        result = cli(
            "rosters", "discard", "--from-date", "2024-01-07", "--to-date", "2024-01-01", "--location", "2",
        )
        assert result.exit_code == 2
        assert api.requests == []

    def test_swap(self, cli, api) -> None:
        api.add("GET", "/supervise/roster/80/swap", json=[{"Id": 81, "Employee": 4}, {"Id": 82}])
        body = json.loads(cli("-o", "json", "rosters", "swap", "80", "--limit", "1").stdout)
        assert [item["Id"] for item in body["items"]] == [81]


class TestLeave:
    def test_add(self, cli, api) -> None:
        api.add("POST", "/resource/Leave", json={"Id": 8, "Employee": 3})
        result = cli(
            "leave", "add", "--employee", "3", "--start-date", "2024-02-01", "--end-date", "2024-02-03",
        )
        assert result.stdout == "Created leave request 8 for employee 3 (2024-02-01 to 2024-02-03)\n"

    def test_add_reversed_range(self, cli, api) -> None:
        result = cli(
            "leave", "add", "--employee", "3", "--start-date", "2024-02-03", "--end-date", "2024-02-01",
        )
        assert result.exit_code == 2
        assert "--start-date must be on or before --end-date" in result.stderr

    def test_approve_json(self, cli, api) -> None:
        api.add("POST", "/resource/Leave/8")
        result = cli("-o", "json", "leave", "approve", "8")
        assert json.loads(result.stdout) == {"Id": 8, "Status": "Approved"}
        assert _body(api.requests[0]) == {"intStatus": 1}

    def test_decline_with_comment(self, cli, api) -> None:
        api.add("POST", "/resource/Leave/8")
        result = cli("leave", "decline", "8", "--comment", "busy", "--yes")
        assert result.stdout == "Leave request 8 declined\n"
        assert _body(api.requests[0]) == {"intStatus": 2, "strComment": "busy"}


class TestWebhooks:
    def test_add(self, cli, api) -> None:
        api.add("POST", "/resource/Webhook", json={"Id": 6, "Topic": "Timesheet.Insert"})
        result = cli(
            "webhooks", "add", "--topic", "Timesheet.Insert", "--url", "https://hooks.example.com/x",
        )
        assert result.stdout == "Created webhook 6 for topic Timesheet.Insert\n"
        assert _body(api.requests[0]) == {
            "strTopic": "Timesheet.Insert",
            "strUrl": "https://hooks.example.com/x",
            "blnEnabled": True,
        }

    def test_add_disabled(self, cli, api) -> None:
        api.add("POST", "/resource/Webhook", json={"Id": 6})
        cli("webhooks", "add", "--topic", "T", "--url", "http://x", "--disabled")
        assert _body(api.requests[0])["blnEnabled"] is False

    def test_add_bad_url(self, cli, api) -> None:
        result = cli("webhooks", "add", "--topic", "T", "--url", "ftp://x")
        assert result.exit_code == 2
        assert "must start with http:// or https://" in result.stderr
