"""Entity shapes, closed enums and write validation.

Rows travel as plain dicts (the store hands back ``sqlite3.Row`` dicts). Writes
go through one pydantic model per kind: it fills the client-side id, validates
required fields and enums, and enforces the per-kind invariants before
anything reaches storage. ``normalize(kind, payload)`` turns a pydantic error
into a field-level ``ValidationError``.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Any, Literal

import pydantic
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from salesops.util import iso10, new_id, today_iso


Profile = Literal["harley", "giovanni"]
PROFILES: tuple[str, ...] = ("harley", "giovanni")

LEGACY_LEAD_STATUSES: tuple[str, ...] = ("marcou", "proposta")
WritableLeadStatus = Literal["realizou", "no_show", "venda"]

FinanceKind = Literal["receita", "despesa"]
ExpenseType = Literal["fixa", "variavel"]
FinanceCategory = Literal[
    "administrativo",
    "pessoas",
    "impostos",
    "sistemas",
    "marketing",
    "comissoes",
    "taxas",
    "outros",
]
FINANCE_CATEGORIES: tuple[str, ...] = FinanceCategory.__args__

TaskStatus = Literal["pausado", "em_andamento", "feito", "arquivado"]
TASK_STATUSES: tuple[str, ...] = TaskStatus.__args__

ImportantCategory = Literal["login", "link", "material", "procedimento", "outro"]
IMPORTANT_CATEGORIES: tuple[str, ...] = ImportantCategory.__args__


class ValidationError(ValueError):
    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message

    def as_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


def _blank_to_none(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return value


def _blank_to_zero(value: Any) -> Any:
    return 0 if _blank_to_none(value) is None else value


def _day(value: Any) -> str | None:
    return iso10(value) or None


Text = Annotated[str, BeforeValidator(lambda v: "" if v is None else str(v))]
Required = Annotated[str, BeforeValidator(lambda v: "" if v is None else str(v)), Field(min_length=1)]
Count = Annotated[int, BeforeValidator(_blank_to_zero), Field(ge=0)]
Money = Annotated[float, BeforeValidator(_blank_to_zero), Field(ge=0)]
Day = Annotated[date, BeforeValidator(_day)]
OptionalDay = Annotated[date | None, BeforeValidator(_day)]


class Entry(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    id: str = Field(default="", validate_default=True)
    created_at: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _fill_id(cls, v: Any) -> str:
        return str(v or "").strip() or new_id()

    @field_validator("created_at", mode="before")
    @classmethod
    def _blank_created_at(cls, v: Any) -> Any:
        return _blank_to_none(v)

    def row(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class AdSpendEntry(Entry):
    profile: Profile
    start_date: Day
    end_date: Day
    impressions: Count = 0
    followers: Count = 0
    clicks: Count = 0
    spend: Money = 0.0

    @field_validator("end_date")
    @classmethod
    def _window_ordered(cls, v: date, info: ValidationInfo) -> date:
        start = info.data.get("start_date")
        if start is not None and v < start:
            raise ValueError("end_date must be on or after start_date")
        return v


class DailyFunnelRecord(Entry):
    profile: Profile
    day: Day
    contato: Count = 0
    qualificacao: Count = 0
    reuniao: Count = 0
    # Superseded by lead status; kept for the legacy columns.
    proposta: int = 0
    fechado: int = 0

    @field_validator("proposta", "fechado", mode="before")
    @classmethod
    def _legacy_zero(cls, v: Any) -> int:
        return 0


class MeetingLead(Entry):
    profile: Profile
    name: Required
    status: WritableLeadStatus
    lead_date: OptionalDay = None
    contact: Text = ""
    instagram: Text = ""
    avg_revenue: Money = 0.0
    notes: Text = ""
    deal_value: Annotated[float, Field(ge=0)] | None = None
    deal_date: OptionalDay = None

    @field_validator("status", mode="before")
    @classmethod
    def _reject_legacy(cls, v: Any) -> Any:
        status = str(v or "").strip()
        if status in LEGACY_LEAD_STATUSES:
            raise ValueError(f"status '{status}' is legacy and read-only")
        return status

    @field_validator("deal_value", mode="before")
    @classmethod
    def _blank_deal_value(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @model_validator(mode="after")
    def _deal_only_for_sales(self, info: ValidationInfo) -> "MeetingLead":
        if self.status == "venda":
            if self.deal_value is None:
                self.deal_value = 0.0
            if self.deal_date is None:
                today = (info.context or {}).get("today") or today_iso()
                self.deal_date = date.fromisoformat(today)
        else:
            self.deal_value = None
            self.deal_date = None
        return self


class FinanceEntry(Entry):
    day: Day
    kind: FinanceKind
    expense_type: ExpenseType | None = Field(default=None, validate_default=True)
    category: FinanceCategory = "outros"
    description: Text = ""
    value: Money = 0.0

    @field_validator("expense_type", mode="before")
    @classmethod
    def _blank_expense_type(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("expense_type")
    @classmethod
    def _expense_type_for_expenses(cls, v: str | None, info: ValidationInfo) -> str | None:
        kind = info.data.get("kind")
        if kind == "despesa" and v is None:
            raise ValueError("expense_type is required for despesa")
        return v if kind == "despesa" else None

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, v: Any) -> Any:
        return _blank_to_none(v) or "outros"


class OpsTask(Entry):
    title: Required
    description: Text = ""
    owner: Text = ""
    due: OptionalDay = None
    status: TaskStatus = "em_andamento"

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, v: Any) -> Any:
        return _blank_to_none(v) or "em_andamento"


class OpsImportantItem(Entry):
    category: ImportantCategory = "outro"
    title: Required
    description: Text = ""
    url: Text = ""

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, v: Any) -> Any:
        return _blank_to_none(v) or "outro"


class OpsCustomer(Entry):
    name: Required
    entry_date: OptionalDay = None
    phone: Text = ""
    product: Text = ""
    paid_value: Money = 0.0
    renewal_date: OptionalDay = None
    churned_at: OptionalDay = None
    notes: Text = ""


class OpsCustomerRenewal(Entry):
    customer_id: Required
    renewal_date: Day
    paid_value: Money = 0.0
    notes: Text = ""


ENTRY_MODELS: dict[str, type[Entry]] = {
    "ad_spend": AdSpendEntry,
    "daily_funnel": DailyFunnelRecord,
    "meeting_leads": MeetingLead,
    "finance": FinanceEntry,
    "tasks": OpsTask,
    "important_items": OpsImportantItem,
    "customers": OpsCustomer,
    "renewals": OpsCustomerRenewal,
}


def normalize(kind: str, payload: dict[str, Any], today: str | None = None) -> dict[str, Any]:
    """Validate ``payload`` for ``kind`` and return the row to store."""
    model = ENTRY_MODELS[kind]
    try:
        entry = model.model_validate(payload, context={"today": today})
    except pydantic.ValidationError as exc:
        err = exc.errors()[0]
        field = ".".join(str(p) for p in err["loc"]) or kind
        raise ValidationError(field, err["msg"]) from None
    return entry.row()

