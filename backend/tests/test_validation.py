"""Per-step wizard validation."""

import pytest

from reportstudio.schemas.report import Draft, ReportType
from reportstudio.services.validation import review_checklist, validate_step


def _setup_draft(**overrides) -> Draft:
    values = {
        "title": "Annual Report 2024-25",
        "financial_year": "FY 2024-25",
        "template_id": "modern",
    }
    values.update(overrides)
    return Draft(**values)


def _with_content(draft: Draft, count: int) -> Draft:
    sections = [
        s.model_copy(update={"content": f"Body of {s.title}"}) if i < count else s
        for i, s in enumerate(draft.sections)
    ]
    return draft.model_copy(update={"sections": sections})


@pytest.mark.unit
class TestSetupStep:
    def test_valid_setup(self):
        result = validate_step(1, _setup_draft())
        assert result.valid
        assert result.errors == {}

    def test_empty_draft_reports_every_missing_field(self):
        result = validate_step(1, Draft())
        assert not result.valid
        assert set(result.errors) == {"title", "financial_year", "template_id"}

    def test_blank_title_is_missing(self):
        result = validate_step(1, _setup_draft(title="   "))
        assert result.errors["title"] == "Report title is required"

    def test_title_length_limit(self):
        assert validate_step(1, _setup_draft(title="x" * 100)).valid
        result = validate_step(1, _setup_draft(title="x" * 101))
        assert "at most 100" in result.errors["title"]

    @pytest.mark.parametrize("token", ["2024-25", "FY 2024-26", "FY 24-25", "fy 2024-25"])
    def test_malformed_financial_year(self, token):
        result = validate_step(1, _setup_draft(financial_year=token))
        assert "financial_year" in result.errors

    def test_century_rollover_financial_year(self):
        assert validate_step(1, _setup_draft(financial_year="FY 2099-00")).valid

    def test_date_range_needs_both_dates(self):
        result = validate_step(1, _setup_draft(period_type="date-range", start_date="2024-04-01"))
        assert set(result.errors) == {"end_date"}

    def test_date_range_must_be_ordered(self):
        result = validate_step(1, _setup_draft(
            period_type="date-range", start_date="2025-03-31", end_date="2024-04-01",
        ))
        assert result.errors["end_date"] == "End date must be after start date"

    def test_date_range_ignores_financial_year(self):
        result = validate_step(1, _setup_draft(
            period_type="date-range",
            financial_year=None,
            start_date="2024-04-01",
            end_date="2025-03-31",
        ))
        assert result.valid

    def test_funder_report_needs_funder(self):
        result = validate_step(1, _setup_draft(report_type=ReportType.FUNDER))
        assert set(result.errors) == {"funder_id"}
        assert validate_step(1, _setup_draft(report_type=ReportType.FUNDER, funder_id="f-1")).valid

    def test_project_report_needs_project(self):
        result = validate_step(1, _setup_draft(report_type=ReportType.PROJECT))
        assert set(result.errors) == {"project_id"}

    def test_unknown_template(self):
        result = validate_step(1, _setup_draft(template_id="baroque"))
        assert result.errors["template_id"] == "Unknown report template: baroque"


@pytest.mark.unit
class TestContentStep:
    def test_four_sections_are_not_enough(self):
        result = validate_step(2, _with_content(_setup_draft(), 4))
        assert not result.valid
        assert "4 of 14 started" in result.errors["sections"]

    def test_five_sections_pass(self):
        assert validate_step(2, _with_content(_setup_draft(), 5)).valid

    def test_whitespace_content_does_not_count(self):
        draft = _with_content(_setup_draft(), 4)
        sections = list(draft.sections)
        sections[10] = sections[10].model_copy(update={"content": "  \n "})
        draft = draft.model_copy(update={"sections": sections})
        assert not validate_step(2, draft).valid

    def test_threshold_is_configurable(self):
        draft = _with_content(_setup_draft(), 2)
        assert validate_step(2, draft, min_sections=2).valid
        assert not validate_step(2, draft, min_sections=3).valid


@pytest.mark.unit
class TestReviewStep:
    def test_ready_draft_passes(self):
        draft = _with_content(_setup_draft(selected_images=["img-1"]), 5)
        assert validate_step(4, draft).valid

    def test_derived_items_follow_the_draft(self):
        items = {i.id: i for i in review_checklist(_setup_draft())}
        assert items["sections"].derived and not items["sections"].checked
        assert items["images"].derived and not items["images"].checked
        # User-toggled items start checked
        assert items["budget"].checked and not items["budget"].derived

    def test_unchecked_item_blocks_review(self):
        draft = _with_content(
            _setup_draft(selected_images=["img-1"], checklist={"spell": False}), 5,
        )
        result = validate_step(4, draft)
        assert set(result.errors) == {"checklist.spell"}

    def test_missing_images_block_review(self):
        result = validate_step(4, _with_content(_setup_draft(), 5))
        assert set(result.errors) == {"checklist.images"}


@pytest.mark.unit
class TestStepDispatch:
    @pytest.mark.parametrize("step", [3, 5])
    def test_optional_steps_always_pass(self, step):
        assert validate_step(step, Draft()).valid

    @pytest.mark.parametrize("step", [0, 6])
    def test_unknown_step_raises(self, step):
        with pytest.raises(ValueError):
            validate_step(step, Draft())
