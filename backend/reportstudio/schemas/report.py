"""Pydantic schemas for the report draft the wizard assembles.

`Draft` is the whole in-progress document. It is persisted verbatim as
the `data` blob of a `reports` row, so it must round-trip through
`model_dump(mode="json")` / `model_validate`.

`DraftUpdate` mirrors `Draft` with every field optional so PATCH
(partial update) works; callers read it with `exclude_unset=True`.
"""

import enum
import re
from datetime import date, datetime

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator


# ── Enumerations ────────────────────────────────────────────

class ReportType(str, enum.Enum):
    ANNUAL = "annual"
    FUNDER = "funder"
    PROJECT = "project"
    CUSTOM = "custom"


class ReportStatus(str, enum.Enum):
    DRAFT = "draft"
    IN_REVIEW = "in-review"
    COMPLETE = "complete"


class Language(str, enum.Enum):
    ENGLISH = "english"
    HINDI = "hindi"
    BOTH = "both"


class PeriodType(str, enum.Enum):
    FINANCIAL_YEAR = "financial-year"
    DATE_RANGE = "date-range"


class SectionStatus(str, enum.Enum):
    NOT_STARTED = "not-started"
    DRAFT = "draft"
    COMPLETE = "complete"


# ── Catalogs ────────────────────────────────────────────────

DEFAULT_SECTION_TITLES = (
    "Executive Summary",
    "Mission, Vision & Values",
    "Leadership Message",
    "Highlights of the Year",
    "Program Updates",
    "Project Activities",
    "Key Metrics",
    "Success Stories",
    "Financial Overview",
    "Funding Breakdown",
    "Partner Acknowledgement",
    "Future Plans",
    "Challenges & Lessons",
    "Call to Action",
)

FINANCIAL_YEARS = (
    "FY 2024-25",
    "FY 2023-24",
    "FY 2022-23",
    "FY 2021-22",
    "FY 2020-21",
)

# "FY 2024-25": second part is the two-digit year after the first
FINANCIAL_YEAR_RE = re.compile(r"^FY (\d{4})-(\d{2})$")


class ReportTemplate(BaseModel):
    id: str
    name: str
    description: str


TEMPLATES: tuple[ReportTemplate, ...] = (
    ReportTemplate(
        id="modern",
        name="Modern Professional",
        description="Clean, contemporary design with focus on visuals and metrics",
    ),
    ReportTemplate(
        id="classic",
        name="Classic Formal",
        description="Traditional layout ideal for government and corporate funders",
    ),
    ReportTemplate(
        id="impact",
        name="Impact Focused",
        description="Story-driven template highlighting outcomes and beneficiaries",
    ),
    ReportTemplate(
        id="minimal",
        name="Minimal Clean",
        description="Simple, elegant design with maximum readability",
    ),
)

TEMPLATE_IDS = frozenset(t.id for t in TEMPLATES)


def is_valid_financial_year(token: str) -> bool:
    match = FINANCIAL_YEAR_RE.match(token)
    if not match:
        return False
    start, end = int(match.group(1)), int(match.group(2))
    return (start + 1) % 100 == end


# ── Sections ────────────────────────────────────────────────

def section_status(content: str, marked_complete: bool = False) -> SectionStatus:
    """Derive a section's fill status from its content."""
    if marked_complete:
        return SectionStatus.COMPLETE
    return SectionStatus.DRAFT if content.strip() else SectionStatus.NOT_STARTED


class Section(BaseModel):
    id: str
    title: str
    content: str = ""
    marked_complete: bool = False
    order: int = 0

    @model_validator(mode="before")
    @classmethod
    def _status_to_mark(cls, values):
        # Clients echo `status` back; only an explicit "complete" means anything.
        if isinstance(values, dict) and "status" in values:
            values = dict(values)
            incoming = values.pop("status")
            if incoming == SectionStatus.COMPLETE.value and "marked_complete" not in values:
                values["marked_complete"] = True
        return values

    @computed_field
    @property
    def status(self) -> SectionStatus:
        return section_status(self.content, self.marked_complete)


def default_sections() -> list[Section]:
    return [
        Section(id=f"section-{i}", title=title, order=i)
        for i, title in enumerate(DEFAULT_SECTION_TITLES)
    ]


# ── Draft ───────────────────────────────────────────────────

class Draft(BaseModel):
    report_type: ReportType = ReportType.ANNUAL
    title: str = ""
    period_type: PeriodType = PeriodType.FINANCIAL_YEAR
    start_date: date | None = None
    end_date: date | None = None
    financial_year: str | None = None
    project_id: str | None = None
    funder_id: str | None = None
    language: Language = Language.ENGLISH
    template_id: str | None = None
    sections: list[Section] = Field(default_factory=default_sections)
    selected_images: list[str] = Field(default_factory=list)
    checklist: dict[str, bool] = Field(default_factory=dict)
    status: ReportStatus = ReportStatus.DRAFT
    current_step: int = Field(default=1, ge=1, le=5)

    @field_validator("selected_images")
    @classmethod
    def _dedupe_images(cls, v: list[str]) -> list[str]:
        # Selection is a set, but the first id is the cover image
        return list(dict.fromkeys(v))

    @property
    def cover_image_id(self) -> str | None:
        return self.selected_images[0] if self.selected_images else None

    @property
    def period(self) -> dict:
        """Only the active period representation."""
        if self.period_type == PeriodType.DATE_RANGE:
            return {"start_date": self.start_date, "end_date": self.end_date}
        return {"financial_year": self.financial_year}

    def started_section_count(self) -> int:
        return sum(1 for s in self.sections if s.status != SectionStatus.NOT_STARTED)


class DraftUpdate(BaseModel):
    """Partial draft. Only keys the client sent are merged."""
    report_type: ReportType | None = None
    title: str | None = None
    period_type: PeriodType | None = None
    start_date: date | None = None
    end_date: date | None = None
    financial_year: str | None = None
    project_id: str | None = None
    funder_id: str | None = None
    language: Language | None = None
    template_id: str | None = None
    sections: list[Section] | None = None
    selected_images: list[str] | None = None
    checklist: dict[str, bool] | None = None


class SectionUpdate(BaseModel):
    content: str | None = None
    title: str | None = None
    complete: bool | None = None


# ── Persisted shape ─────────────────────────────────────────

class DraftRecord(BaseModel):
    """A `reports` row as read back from the store."""
    id: str
    org_id: str
    title: str
    report_type: ReportType
    status: ReportStatus
    data: dict
    current_step: int
    generated_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ReportSummary(BaseModel):
    id: str
    title: str
    report_type: ReportType
    status: ReportStatus
    current_step: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
