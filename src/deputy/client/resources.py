"""Typed services for the Deputy API resources deputy exposes.

Each service wraps a :class:`~deputy.client.sync_client.DeputyClient` and
turns raw JSON into the Pydantic models of :mod:`deputy.models`.

Pagination: list endpoints accept ``max``/``start`` query parameters.
Departments and employees page through their ``QUERY`` endpoint instead,
since their plain list endpoints ignore those parameters.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional, Sequence, TypeVar
from urllib.parse import quote

from pydantic import BaseModel

from deputy.exceptions import APIError, DeputyError, find_error
from deputy.models import (
    LEAVE_APPROVED,
    LEAVE_DECLINED,
    Agreement,
    ClockResult,
    Department,
    Employee,
    Journal,
    Leave,
    Location,
    LocationSettings,
    MeInfo,
    Memo,
    PayRule,
    ResourceInfo,
    Roster,
    SalesData,
    SwapRoster,
    Timesheet,
    TimesheetPayReturn,
    Unavailability,
    Webhook,
)

if TYPE_CHECKING:
    from deputy.client.sync_client import DeputyClient

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

KNOWN_RESOURCES: tuple[str, ...] = (
    "Employee",
    "EmployeeRole",
    "Company",
    "OperationalUnit",
    "Timesheet",
    "PayRules",
    "TimesheetPayReturn",
    "Roster",
    "Leave",
    "LeaveRules",
    "LeaveAccrualTransaction",
    "Address",
    "Contact",
    "EmploymentContract",
    "EmployeeAvailability",
    "EmployeeSalaryOpunitCosting",
    "EmployeeAppraisal",
    "EmployeeAgreement",
    "EmployeeHistory",
    "TrainingModule",
    "TrainingRecord",
    "Task",
    "Memo",
    "Journal",
    "Comment",
    "Webhook",
    "SalesData",
    "SystemUsageTracking",
)


def page_params(limit: int = 0, offset: int = 0) -> Optional[dict[str, int]]:
    """Query parameters for server-side pagination, or ``None`` when unset."""
    params: dict[str, int] = {}
    if limit > 0:
        params["max"] = limit
    if offset > 0:
        params["start"] = offset
    return params or None


def query_body(limit: int = 0, offset: int = 0, search: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    """Body for a ``/resource/<Name>/QUERY`` request."""
    body: dict[str, Any] = {}
    if search:
        body["search"] = search
    if limit > 0:
        body["max"] = limit
    if offset > 0:
        body["start"] = offset
    return body


def _with_optional(body: dict[str, Any], **optional: Any) -> dict[str, Any]:
    """Add the *optional* fields that are set (not empty, zero or False) to *body*."""
    for key, value in optional.items():
        if value:
            body[key] = value
    return body


def _as_list(data: Any, path: str) -> list[Any]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise DeputyError(f"unexpected response from {path}: expected a list")
    return data


def _models(model: type[M], data: Any, path: str) -> list[M]:
    return [model.model_validate(item) for item in _as_list(data, path)]


def _model(model: type[M], data: Any, path: str) -> M:
    if not isinstance(data, dict):
        raise DeputyError(f"unexpected response from {path}: expected an object")
    return model.model_validate(data)


class _Service:
    def __init__(self, client: DeputyClient) -> None:
        self._client = client


class DepartmentsService(_Service):
    """Operational units (``/resource/OperationalUnit``)."""

    def list(self, limit: int = 0, offset: int = 0) -> list[Department]:
        if limit > 0 or offset > 0:
            path = "/resource/OperationalUnit/QUERY"
            data = self._client.post(path, json_body=query_body(limit, offset))
        else:
            path = "/resource/OperationalUnit"
            data = self._client.get(path)
        return _models(Department, data, path)

    def get(self, department_id: int) -> Department:
        path = f"/resource/OperationalUnit/{department_id}"
        return _model(Department, self._client.get(path), path)

    def create(
        self,
        company: int,
        name: str,
        code: str = "",
        parent_id: int = 0,
        sort_order: int = 0,
    ) -> Department:
        body: dict[str, Any] = {"intCompanyId": company, "strCompanyName": name}
        if parent_id:
            body["intParentId"] = parent_id
        if code:
            body["strCompanyCode"] = code
        if sort_order:
            body["intSortOrder"] = sort_order
        path = "/resource/OperationalUnit"
        return _model(Department, self._client.post(path, json_body=body), path)

    def update(
        self,
        department_id: int,
        name: str = "",
        code: str = "",
        active: Optional[bool] = None,
        sort_order: int = 0,
    ) -> Department:
        body: dict[str, Any] = {}
        if name:
            body["strCompanyName"] = name
        if code:
            body["strCompanyCode"] = code
        if active is not None:
            body["blnActive"] = active
        if sort_order:
            body["intSortOrder"] = sort_order
        path = f"/resource/OperationalUnit/{department_id}"
        return _model(Department, self._client.post(path, json_body=body), path)

    def delete(self, department_id: int) -> None:
        self._client.delete(f"/resource/OperationalUnit/{department_id}")


class EmployeesService(_Service):
    def list(self, limit: int = 0, offset: int = 0) -> list[Employee]:
        if limit > 0 or offset > 0:
            path = "/resource/Employee/QUERY"
            data = self._client.post(path, json_body=query_body(limit, offset))
        else:
            path = "/supervise/employee"
            data = self._client.get(path)
        return _models(Employee, data, path)

    def get(self, employee_id: int) -> Employee:
        path = f"/supervise/employee/{employee_id}"
        return _model(Employee, self._client.get(path), path)

    def create(
        self,
        first_name: str,
        last_name: str,
        company: int,
        email: str = "",
        mobile: str = "",
        start_date: str = "",
        role: int = 0,
    ) -> Employee:
        body = _with_optional(
            {"strFirstName": first_name, "strLastName": last_name, "intCompany": company},
            strEmail=email,
            strMobile=mobile,
            strStartDate=start_date,
            intRoleId=role,
        )
        path = "/supervise/employee"
        return _model(Employee, self._client.post(path, json_body=body), path)

    def update(
        self,
        employee_id: int,
        first_name: str = "",
        last_name: str = "",
        email: str = "",
        mobile: str = "",
        active: Optional[bool] = None,
    ) -> Employee:
        body = _with_optional(
            {},
            strFirstName=first_name,
            strLastName=last_name,
            strEmail=email,
            strMobile=mobile,
        )
        if active is not None:
            body["blnActive"] = active
        path = f"/resource/Employee/{employee_id}"
        return _model(Employee, self._client.post(path, json_body=body), path)

    def reactivate(self, employee_id: int) -> None:
        self.update(employee_id, active=True)

    def terminate(self, employee_id: int, termination_date: str) -> None:
        self._client.post(
            f"/supervise/employee/{employee_id}/terminate",
            json_body={"strTerminationDate": termination_date},
        )

    def invite(self, employee_id: int) -> None:
        self._client.post(f"/supervise/employee/{employee_id}/invite")

    def delete(self, employee_id: int) -> None:
        self._client.delete(f"/supervise/employee/{employee_id}")

    def assign_location(self, employee_id: int, location_id: int) -> None:
        self._client.post(
            f"/supervise/employee/{employee_id}/location",
            json_body={"intEmployeeId": employee_id, "intCompanyId": location_id},
        )

    def remove_location(self, employee_id: int, location_id: int) -> None:
        self._client.delete(f"/supervise/employee/{employee_id}/location/{location_id}")

    def add_unavailability(
        self, employee_id: int, date_start: str, date_end: str, comment: str = ""
    ) -> Unavailability:
        body = _with_optional(
            {"intEmployee": employee_id, "strDateStart": date_start, "strDateEnd": date_end},
            strComment=comment,
        )
        path = "/resource/EmployeeAvailability"
        return _model(Unavailability, self._client.post(path, json_body=body), path)


class LocationsService(_Service):
    """Locations, falling back to ``/resource/Company`` when the simplified
    endpoint is missing or forbidden for the current role."""

    def list(self, limit: int = 0, offset: int = 0) -> list[Location]:
        params = page_params(limit, offset)
        path = "/supervise/location/simplified"
        try:
            return _models(Location, self._client.get(path, params=params), path)
        except DeputyError as exc:
            api_err = find_error(exc, APIError)
            if api_err is None or api_err.status_code not in (403, 404):
                raise
            primary = exc

        logger.debug("locations list fallback to /resource/Company")
        fallback_path = "/resource/Company"
        try:
            return _models(Location, self._client.get(fallback_path, params=params), fallback_path)
        except DeputyError as fallback_exc:
            raise DeputyError(
                f"locations list failed: {primary} (fallback to {fallback_path} failed: {fallback_exc})"
            ) from primary

    def get(self, location_id: int) -> Location:
        path = f"/resource/Company/{location_id}"
        return _model(Location, self._client.get(path), path)

    def create(self, name: str, code: str = "", address: str = "", timezone: str = "") -> Location:
        body = _with_optional(
            {"strCompanyName": name},
            strCompanyCode=code,
            strAddress=address,
            strTimezone=timezone,
        )
        path = "/supervise/location"
        return _model(Location, self._client.post(path, json_body=body), path)

    def update(
        self,
        location_id: int,
        name: str = "",
        code: str = "",
        address: str = "",
        timezone: str = "",
    ) -> Location:
        body = _with_optional(
            {},
            strCompanyName=name,
            strCompanyCode=code,
            strAddress=address,
            strTimezone=timezone,
        )
        path = f"/supervise/location/{location_id}"
        return _model(Location, self._client.put(path, json_body=body), path)

    def archive(self, location_id: int) -> None:
        self._client.post(f"/supervise/location/{location_id}/archive")

    def delete(self, location_id: int) -> None:
        self._client.delete(f"/supervise/location/{location_id}")

    def settings(self, location_id: int) -> LocationSettings:
        path = f"/supervise/location/{location_id}/settings"
        return _model(LocationSettings, self._client.get(path), path)

    def update_settings(self, location_id: int, settings: dict[str, Any]) -> None:
        self._client.post(
            f"/supervise/location/{location_id}/settings",
            json_body={"arrSettings": settings},
        )


class TimesheetsService(_Service):
    def list(self, limit: int = 0, offset: int = 0) -> list[Timesheet]:
        path = "/my/timesheets"
        return _models(Timesheet, self._client.get(path, params=page_params(limit, offset)), path)

    def query(self, search: dict[str, Any], limit: int = 0, offset: int = 0) -> list[Timesheet]:
        path = "/resource/Timesheet/QUERY"
        data = self._client.post(path, json_body=query_body(limit, offset, search))
        return _models(Timesheet, data, path)

    def get(self, timesheet_id: int) -> Timesheet:
        path = f"/supervise/timesheet/{timesheet_id}"
        return _model(Timesheet, self._client.get(path), path)

    def update(self, timesheet_id: int, cost: float) -> Timesheet:
        path = f"/resource/Timesheet/{timesheet_id}"
        return _model(Timesheet, self._client.post(path, json_body={"Cost": cost}), path)

    def clock_in(self, employee_id: int, opunit_id: int = 0, comment: str = "") -> ClockResult:
        return self._clock("start", employee_id=employee_id, opunit_id=opunit_id, comment=comment)

    def clock_out(self, timesheet_id: int = 0, employee_id: int = 0, comment: str = "") -> ClockResult:
        return self._clock("stop", timesheet_id=timesheet_id, employee_id=employee_id, comment=comment)

    def start_break(self, timesheet_id: int = 0, employee_id: int = 0) -> None:
        self._clock("pause", timesheet_id=timesheet_id, employee_id=employee_id)

    def end_break(self, timesheet_id: int = 0, employee_id: int = 0) -> None:
        self._clock("resume", timesheet_id=timesheet_id, employee_id=employee_id)

    def _clock(
        self,
        action: str,
        employee_id: int = 0,
        timesheet_id: int = 0,
        opunit_id: int = 0,
        comment: str = "",
    ) -> ClockResult:
        body = _with_optional(
            {},
            intEmployeeId=employee_id,
            intTimesheetId=timesheet_id,
            intOpunitId=opunit_id,
            strComment=comment,
        )
        path = f"/supervise/timesheet/{action}"
        data = self._client.post(path, json_body=body)
        if data is None:
            return ClockResult(id=timesheet_id, employee=employee_id)
        return _model(ClockResult, data, path)

    def pay_rules(self, hourly_rate: Optional[float] = None) -> list[PayRule]:
        search = None
        if hourly_rate is not None:
            search = {"s1": {"field": "HourlyRate", "type": "eq", "data": hourly_rate}}
        path = "/resource/PayRules/QUERY"
        return _models(PayRule, self._client.post(path, json_body=query_body(search=search)), path)

    def pay_return(self, timesheet_id: int) -> TimesheetPayReturn:
        """The pay return of a timesheet.

        Raises:
            DeputyError: The timesheet has no pay return (not yet approved).
        """
        search = {"s1": {"field": "Timesheet", "type": "eq", "data": timesheet_id}}
        path = "/resource/TimesheetPayReturn/QUERY"
        returns = _models(
            TimesheetPayReturn, self._client.post(path, json_body=query_body(search=search)), path
        )
        if not returns:
            raise DeputyError(f"no pay return found for timesheet {timesheet_id}")
        return returns[0]

    def select_pay_rule(self, timesheet_id: int, pay_rule_id: int) -> TimesheetPayReturn:
        """Pay a timesheet under *pay_rule_id*.

        The cost is the rule's hourly rate times the timesheet's hours. It is
        written to both the pay return and the timesheet, since the timesheet
        keeps its own copy of the cost.

        Raises:
            DeputyError: No pay return, unknown pay rule or a timesheet
                without recorded hours.
        """
        existing = self.pay_return(timesheet_id)
        timesheet = self.get(timesheet_id)

        search = {"s1": {"field": "Id", "type": "eq", "data": pay_rule_id}}
        path = "/resource/PayRules/QUERY"
        rules = _models(PayRule, self._client.post(path, json_body=query_body(search=search)), path)
        if not rules:
            raise DeputyError(f"pay rule {pay_rule_id} not found")
        if timesheet.total_time <= 0:
            raise DeputyError(
                f"timesheet {timesheet_id} has no hours recorded (TotalTime: {timesheet.total_time:.2f})"
            )

        cost = rules[0].hourly_rate * timesheet.total_time
        return_path = f"/resource/TimesheetPayReturn/{existing.id}"
        result = _model(
            TimesheetPayReturn,
            self._client.post(
                return_path,
                json_body={"PayRule": pay_rule_id, "Cost": cost, "Overridden": True},
            ),
            return_path,
        )
        self._client.post(f"/resource/Timesheet/{timesheet_id}", json_body={"Cost": cost})
        return result


class RostersService(_Service):
    def list(self, limit: int = 0, offset: int = 0) -> list[Roster]:
        path = "/supervise/roster"
        return _models(Roster, self._client.get(path, params=page_params(limit, offset)), path)

    def get(self, roster_id: int) -> Roster:
        path = f"/resource/Roster/{roster_id}"
        return _model(Roster, self._client.get(path), path)

    def create(
        self,
        employee_id: int,
        opunit_id: int,
        start_time: int,
        end_time: int,
        mealbreak: str = "",
        comment: str = "",
        open_shift: bool = False,
        publish: bool = False,
    ) -> Roster:
        body = _with_optional(
            {
                "intEmployeeId": employee_id,
                "intOpunitId": opunit_id,
                "intStartTimestamp": start_time,
                "intEndTimestamp": end_time,
            },
            strMealbreak=mealbreak,
            strComment=comment,
            blnOpen=open_shift,
            blnPublish=publish,
        )
        path = "/supervise/roster"
        return _model(Roster, self._client.post(path, json_body=body), path)

    def copy(self, from_date: str, to_date: str, location_id: int) -> None:
        self._range_action("copy", from_date, to_date, location_id)

    def publish(self, from_date: str, to_date: str, location_id: int) -> None:
        self._range_action("publish", from_date, to_date, location_id)

    def discard(self, from_date: str, to_date: str, location_id: int) -> None:
        self._range_action("discard", from_date, to_date, location_id)

    def _range_action(self, action: str, from_date: str, to_date: str, location_id: int) -> None:
        self._client.post(
            f"/supervise/roster/{action}",
            json_body={"strFromDate": from_date, "strToDate": to_date, "intLocationId": location_id},
        )

    def swappable(self, roster_id: int) -> list[SwapRoster]:
        path = f"/supervise/roster/{roster_id}/swap"
        return _models(SwapRoster, self._client.get(path), path)


class LeaveService(_Service):
    def list(self, limit: int = 0, offset: int = 0) -> list[Leave]:
        path = "/resource/Leave"
        return _models(Leave, self._client.get(path, params=page_params(limit, offset)), path)

    def get(self, leave_id: int) -> Leave:
        path = f"/resource/Leave/{leave_id}"
        return _model(Leave, self._client.get(path), path)

    def create(
        self,
        employee_id: int,
        date_start: str,
        date_end: str,
        leave_rule: int = 0,
        comment: str = "",
    ) -> Leave:
        body = _with_optional(
            {"intEmployee": employee_id, "strDateStart": date_start, "strDateEnd": date_end},
            intLeaveRule=leave_rule,
            strComment=comment,
        )
        path = "/resource/Leave"
        return _model(Leave, self._client.post(path, json_body=body), path)

    def approve(self, leave_id: int) -> None:
        self._client.post(f"/resource/Leave/{leave_id}", json_body={"intStatus": LEAVE_APPROVED})

    def decline(self, leave_id: int, comment: str = "") -> None:
        body = _with_optional({"intStatus": LEAVE_DECLINED}, strComment=comment)
        self._client.post(f"/resource/Leave/{leave_id}", json_body=body)


class WebhooksService(_Service):
    def list(self, limit: int = 0, offset: int = 0) -> list[Webhook]:
        path = "/resource/Webhook"
        return _models(Webhook, self._client.get(path, params=page_params(limit, offset)), path)

    def get(self, webhook_id: int) -> Webhook:
        path = f"/resource/Webhook/{webhook_id}"
        return _model(Webhook, self._client.get(path), path)

    def create(self, topic: str, url: str, webhook_type: str = "", enabled: bool = True) -> Webhook:
        body = _with_optional({"strTopic": topic, "strUrl": url}, strType=webhook_type)
        body["blnEnabled"] = enabled
        path = "/resource/Webhook"
        return _model(Webhook, self._client.post(path, json_body=body), path)

    def delete(self, webhook_id: int) -> None:
        self._client.delete(f"/resource/Webhook/{webhook_id}")


class PayService(_Service):
    """Award library and employee agreements.

    Award library entries differ between countries, so they are returned
    as plain dicts.
    """

    def awards(self) -> list[dict[str, Any]]:
        path = "/payroll/listAwardsLibrary"
        return _as_list(self._client.get(path), path)

    def award(self, award_code: str) -> dict[str, Any]:
        path = f"/payroll/listAwardsLibrary/{quote(award_code, safe='')}"
        data = self._client.get(path)
        if not isinstance(data, dict):
            raise DeputyError(f"unexpected response from {path}: expected an object")
        return data

    def set_award(
        self,
        employee_id: int,
        country_code: str,
        award_code: str,
        overrides: Optional[list[tuple[str, float]]] = None,
    ) -> Any:
        body: dict[str, Any] = {"strCountryCode": country_code, "strAwardCode": award_code}
        if overrides:
            body["arrOverridePayRules"] = [
                {"Id": rule_id, "HourlyRate": rate} for rule_id, rate in overrides
            ]
        return self._client.post(
            f"/supervise/employee/{employee_id}/setAwardFromLibrary", json_body=body
        )

    def agreements(self, employee_id: int, active_only: bool = False) -> list[Agreement]:
        search: dict[str, Any] = {"s1": {"field": "EmployeeId", "type": "eq", "data": employee_id}}
        if active_only:
            search["s2"] = {"field": "Active", "type": "eq", "data": True}
        path = "/resource/EmployeeAgreement/QUERY"
        return _models(Agreement, self._client.post(path, json_body=query_body(search=search)), path)

    def agreement(self, agreement_id: int) -> Agreement:
        path = f"/resource/EmployeeAgreement/{agreement_id}"
        return _model(Agreement, self._client.get(path), path)

    def update_agreement(
        self,
        agreement_id: int,
        base_rate: Optional[float] = None,
        config: Optional[dict[str, Any]] = None,
    ) -> Agreement:
        body: dict[str, Any] = {}
        if base_rate is not None:
            body["BaseRate"] = base_rate
        if config is not None:
            body["Config"] = config
        path = f"/resource/EmployeeAgreement/{agreement_id}"
        return _model(Agreement, self._client.post(path, json_body=body), path)


class SalesService(_Service):
    """Sales metrics. New data points go through the v2 metrics API."""

    def list(self, company: int = 0) -> list[SalesData]:
        path = "/resource/SalesData"
        params = {"company": company} if company else None
        return _models(SalesData, self._client.get(path, params=params), path)

    def add(
        self,
        company: int,
        timestamp: int,
        value: float,
        area: int = 0,
        sales_type: str = "",
    ) -> SalesData:
        body = _with_optional(
            {"intCompanyId": company, "intTimestamp": timestamp, "fltValue": value},
            intAreaId=area,
            strType=sales_type,
        )
        path = "/metrics"
        return _model(SalesData, self._client.post(path, json_body=body, api_version="v2"), path)


class ManagementService(_Service):
    """Memos (news feed posts) and employee journal entries."""

    def memos(self, company: int) -> list[Memo]:
        path = "/supervise/memo"
        return _models(Memo, self._client.get(path, params={"company": company}), path)

    def create_memo(
        self,
        company: int,
        content: str,
        locations: Sequence[int] = (),
        employees: Sequence[int] = (),
    ) -> Memo:
        body = _with_optional(
            {"strContent": content, "intCompanyId": company},
            arrLocation=list(locations),
            arrEmployee=list(employees),
        )
        path = "/supervise/memo"
        return _model(Memo, self._client.put(path, json_body=body), path)

    def journals(self, employee_id: int) -> list[Journal]:
        path = "/supervise/journal"
        return _models(Journal, self._client.get(path, params={"employee": employee_id}), path)

    def post_journal(self, employee_id: int, company: int, comment: str, category: int = 0) -> Journal:
        body = _with_optional(
            {"intEmployeeId": employee_id, "intCompanyId": company, "strComment": comment},
            intCategory=category,
        )
        path = "/supervise/journal"
        return _model(Journal, self._client.post(path, json_body=body), path)


class MeService(_Service):
    """The authenticated user. These endpoints do not paginate."""

    def info(self) -> MeInfo:
        return _model(MeInfo, self._client.get("/me"), "/me")

    def timesheets(self) -> list[Timesheet]:
        return _models(Timesheet, self._client.get("/my/timesheets"), "/my/timesheets")

    def rosters(self) -> list[Roster]:
        return _models(Roster, self._client.get("/my/rosters"), "/my/rosters")

    def leave(self) -> list[Leave]:
        return _models(Leave, self._client.get("/my/leave"), "/my/leave")


class ResourceService:
    """Generic access to any resource by name; records stay plain dicts."""

    def __init__(self, client: DeputyClient, name: str) -> None:
        self._client = client
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def info(self) -> ResourceInfo:
        path = f"/resource/{self._name}/INFO"
        return _model(ResourceInfo, self._client.get(path), path)

    def get(self, record_id: int) -> dict[str, Any]:
        path = f"/resource/{self._name}/{record_id}"
        data = self._client.get(path)
        if not isinstance(data, dict):
            raise DeputyError(f"unexpected response from {path}: expected an object")
        return data

    def query(self, limit: int = 0, offset: int = 0) -> list[dict[str, Any]]:
        """Records of this resource, paged on the server through ``QUERY``."""
        path = f"/resource/{self._name}/QUERY"
        return _as_list(self._client.post(path, json_body=query_body(limit, offset)), path)
