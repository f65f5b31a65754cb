"""Canonical Pydantic models shared across deputy modules.

The models fall into three groups:

**Invocation settings** -- resolved once per process and never mutated:
    :class:`OutputMode`, :class:`RenderOptions`, :class:`RequestConfig`,
    :class:`Credentials`.

**Error envelope** -- the machine-readable error body written to stderr in
JSON mode: :class:`ErrorDetail` wrapped in :class:`ErrorEnvelope`.

**API resources** -- records returned by the Deputy API. Field names are
snake_case in Python and serialise back to the API's own PascalCase names
(``Id``, ``CompanyName``) so every command emits one key convention.
Unknown fields returned by the API are preserved and passed through.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal


# --- Invocation settings ---


class OutputMode(str, Enum):
    """Effective output mode of one invocation."""

    TEXT = "text"
    JSON = "json"


class RenderOptions(BaseModel):
    """Everything the renderer needs to know about how to print a result.

    The global part (``mode``, ``raw``, ``query``) is fixed by the root
    callback; list commands add ``limit``, ``offset`` and ``fail_empty``
    with :meth:`for_list`, which returns a copy.
    """

    model_config = ConfigDict(frozen=True)

    mode: OutputMode = OutputMode.TEXT
    raw: bool = False
    query: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    fail_empty: bool = False
    no_color: bool = False

    @property
    def is_json(self) -> bool:
        return self.mode == OutputMode.JSON

    def for_list(
        self,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        fail_empty: bool = False,
    ) -> RenderOptions:
        """Return a copy carrying per-command pagination and empty-result policy.

        A ``limit`` or ``offset`` of ``0`` means "not set".
        """
        return self.model_copy(
            update={
                "limit": limit or None,
                "offset": offset or None,
                "fail_empty": fail_empty,
            }
        )


class RequestConfig(BaseModel):
    """HTTP request settings applied to every API call."""

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    max_retries: int = Field(default=0, description="Retries on 5xx and network errors")


_API_VERSION_RE = re.compile(r"/api/v\d+")


class Credentials(BaseModel):
    """Deputy API credentials.

    Either ``install`` (plus optional ``geo``) or ``base_url_override`` must
    be present for :meth:`base_url` to produce a usable URL.
    """

    token: str
    install: str = ""
    geo: str = ""
    base_url_override: str = ""
    auth_scheme: str = "Bearer"
    source: str = Field(default="env", description="Where the credentials were read from")

    def base_url(self, version: str = "v1") -> str:
        """Return the API base URL for *version* (``v1`` or ``v2``)."""
        if self.base_url_override:
            return normalize_base_url(self.base_url_override, version)
        if not self.install:
            return ""
        if self.geo:
            return f"https://{self.install}.{self.geo}.deputy.com/api/{version}"
        return f"https://{self.install}.deputy.com/api/{version}"

    def authorization_header(self) -> str:
        scheme = self.auth_scheme.strip() or "Bearer"
        return f"{scheme} {self.token}"

    def masked_token(self) -> str:
        if len(self.token) <= 8:
            return "*" * len(self.token)
        return f"{self.token[:4]}...{self.token[-4:]}"


def normalize_base_url(base_url: str, version: str) -> str:
    """Normalise a user-supplied base URL to ``https://host/api/<version>``.

    Accepts a bare host, a URL without ``/api/vN``, or a URL pointing at
    another API version.
    """
    url = base_url.strip().rstrip("/")
    if not url:
        return ""
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"
    if _API_VERSION_RE.search(url):
        return _API_VERSION_RE.sub(f"/api/{version}", url)
    return f"{url}/api/{version}"


# --- Error envelope ---


class ErrorDetail(BaseModel):
    """Body of the JSON error envelope.

    ``status``, ``retryAfter``, ``field`` and ``hint`` are omitted from the
    serialised form when unknown.
    """

    model_config = ConfigDict(populate_by_name=True)

    code: str
    status: Optional[int] = None
    message: str
    retryable: bool = False
    retry_after: Optional[int] = Field(default=None, alias="retryAfter")
    field: Optional[str] = None
    hint: Optional[str] = None


class ErrorEnvelope(BaseModel):
    """``{"error": {...}}`` -- the machine-readable error written on failure."""

    error: ErrorDetail

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


# --- API resources ---


class DeputyModel(BaseModel):
    """Base for API records: PascalCase on the wire, extra fields preserved."""

    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        extra="allow",
    )

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Department(DeputyModel):
    """An operational unit (``OperationalUnit`` resource)."""

    id: int = 0
    company: int = 0
    parent_id: int = 0
    company_name: str = ""
    company_code: str = ""
    active: bool = False
    sort_order: int = 0


class Employee(DeputyModel):
    id: int = 0
    first_name: str = ""
    last_name: str = ""
    display_name: str = ""
    email: str = ""
    mobile: str = ""
    active: bool = False
    company: int = 0
    role: int = 0
    start_date: str = ""
    termination_date: str = ""


class Location(DeputyModel):
    """A location (``Company`` resource).

    ``Address`` is either a formatted string or a foreign key, depending on
    the endpoint that returned it.
    """

    id: int = 0
    company_name: str = ""
    code: str = ""
    company_code: str = ""
    address: Any = None
    active: bool = False
    timezone: str = ""

    def address_text(self) -> str:
        if self.address is None:
            return ""
        return str(self.address)


class Timesheet(DeputyModel):
    id: int = 0
    employee: int = 0
    date: str = ""
    start_time: int = 0
    end_time: int = 0
    mealbreak: str = ""
    total_time: float = 0.0
    total_time_str: str = ""
    operational_unit: int = 0
    is_in_progress: bool = False
    is_leave: bool = False
    comment: str = ""
    cost: float = 0.0


class Roster(DeputyModel):
    id: int = 0
    date: str = ""
    start_time: int = 0
    end_time: int = 0
    mealbreak: str = ""
    employee: int = 0
    operational_unit: int = 0
    open: bool = False
    published: bool = False
    comment: str = ""


LEAVE_APPROVED = 1
LEAVE_DECLINED = 2

LEAVE_STATUSES = {
    0: "Awaiting",
    1: "Approved",
    2: "Declined",
    3: "Cancelled",
    4: "Pay Pending",
    5: "Pay Approved",
}


class Leave(DeputyModel):
    id: int = 0
    employee: int = 0
    company: int = 0
    date_start: str = ""
    date_end: str = ""
    status: int = 0
    hours: float = 0.0
    days: float = 0.0
    comment: str = ""
    leave_rule: int = 0

    def status_text(self) -> str:
        return LEAVE_STATUSES.get(self.status, f"Unknown ({self.status})")


class Webhook(DeputyModel):
    id: int = 0
    topic: str = ""
    url: str = Field(default="", alias="Address")
    type: str = ""
    enabled: bool = False
    created: str = ""
    modified: str = ""


class Unavailability(DeputyModel):
    id: int = 0
    employee: int = 0
    date_start: str = ""
    date_end: str = ""
    comment: str = ""


class ClockResult(DeputyModel):
    """Reply to a clock-in or clock-out: the timesheet and its employee."""

    id: int = 0
    employee: int = 0


class PayRule(DeputyModel):
    id: int = 0
    pay_title: str = ""
    hourly_rate: float = 0.0


class TimesheetPayReturn(DeputyModel):
    """Link between a timesheet and the pay rule it is paid under."""

    id: int = 0
    timesheet: int = 0
    pay_rule: int = 0
    value: float = 0.0
    cost: float = 0.0
    overridden: bool = False


class SwapRoster(DeputyModel):
    id: int = 0
    date: str = ""
    start_time: int = 0
    end_time: int = 0
    employee: int = 0
    operational_unit: int = 0


class LocationSettings(DeputyModel):
    id: int = 0
    settings: dict[str, Any] = Field(default_factory=dict)


class Agreement(DeputyModel):
    """An ``EmployeeAgreement``: pay terms for one employee.

    ``BaseRate`` is ``None`` when the agreement does not set one.
    """

    id: int = 0
    employee: int = 0
    active: bool = False
    base_rate: Optional[float] = None
    config: Any = None
    contract: int = 0
    pay_point: int = 0


class SalesData(DeputyModel):
    id: int = 0
    company: int = 0
    area: int = 0
    timestamp: int = 0
    value: float = 0.0
    type: str = ""


class Memo(DeputyModel):
    id: int = 0
    content: str = ""
    company: int = 0
    creator: int = 0
    created: int = 0
    show_from: int = 0
    show_until: int = 0


class Journal(DeputyModel):
    id: int = 0
    employee: int = 0
    company: int = 0
    comment: str = ""
    created: int = 0
    category: int = 0


class MeInfo(DeputyModel):
    """The authenticated user, as returned by ``/me``."""

    user_id: int = 0
    employee_id: int = 0
    login: str = ""
    name: str = ""
    first_name: str = ""
    last_name: str = ""
    primary_email: str = ""
    primary_phone: str = ""
    company: int = 0
    portfolio: str = ""
    role: int = 0


class ResourceInfo(BaseModel):
    """Schema description of a generic resource (``/resource/<Name>/INFO``)."""

    model_config = ConfigDict(extra="allow")

    name: str = ""
    fields: dict[str, Any] = Field(default_factory=dict)
    assocs: Any = None

    def association_names(self) -> list[str]:
        """Association names, whether the API sent a mapping or a list."""
        if isinstance(self.assocs, dict):
            return sorted(self.assocs)
        if isinstance(self.assocs, list):
            return [a for a in self.assocs if isinstance(a, str)]
        return []
