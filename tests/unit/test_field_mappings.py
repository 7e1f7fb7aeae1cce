"""
Tests unitarios para la proyección de items a CanonicalRecord.

Verifica que la proyección es total (defaults para todo lo faltante),
que compara nombres sin mayúsculas y que respeta las precedencias
documentadas (texto > select > fecha, título del campo > título del Issue).
"""
from datetime import date, datetime, timezone

from tracker_sync.domain.entities.project_item import (
    FieldKind,
    FieldValue,
    IssueContent,
    SourceItem,
)
from tracker_sync.domain.entities.tracked_issue import CanonicalRecord
from tracker_sync.infrastructure.external.github_projects.field_mappings import (
    FIELD_MAPPINGS,
    build_field_lookup,
    project_item,
)
from tests.conftest import make_item


class TestProjectItem:
    """Tests para project_item."""

    def test_item_without_fields_or_content_gets_all_defaults(self):
        record = project_item(SourceItem(item_id="PVTI_draft"))

        assert record == CanonicalRecord(
            issue_number=None,
            issue_title="No Title",
            issue_url="N/A",
            assignees=["Unassigned"],
            status="No Status",
            priority="No Priority",
            issue_type="No Issue Type",
            created_by="Unknown",
            app_name="N/A",
            build_type="N/A",
            build_version="N/A",
            device_type="N/A",
            timeline=None,
            created_at=None,
        )

    def test_every_slot_has_a_default_when_fields_missing(self):
        record = project_item(make_item(42))
        for mapping in FIELD_MAPPINGS:
            assert getattr(record, mapping.column) == mapping.default

    def test_maps_fields_case_insensitively(self):
        item = make_item(
            5,
            fields=[
                FieldValue("STATUS", FieldKind.SINGLE_SELECT, "In progress"),
                FieldValue("priority", FieldKind.SINGLE_SELECT, "P1"),
                FieldValue("issue type", FieldKind.SINGLE_SELECT, "Bug"),
                FieldValue("Created By", FieldKind.TEXT, "qa-team"),
                FieldValue("app name", FieldKind.SINGLE_SELECT, "Rider"),
                FieldValue("BUILD TYPE", FieldKind.SINGLE_SELECT, "Release"),
                FieldValue("Build version", FieldKind.TEXT, "2.4.1"),
                FieldValue("device type", FieldKind.SINGLE_SELECT, "Android"),
                FieldValue("timeline", FieldKind.DATE, date(2024, 2, 14)),
            ],
        )

        record = project_item(item)

        assert record.status == "In progress"
        assert record.priority == "P1"
        assert record.issue_type == "Bug"
        assert record.created_by == "qa-team"
        assert record.app_name == "Rider"
        assert record.build_type == "Release"
        assert record.build_version == "2.4.1"
        assert record.device_type == "Android"
        assert record.timeline == date(2024, 2, 14)

    def test_content_slots(self):
        created = datetime(2024, 1, 1, tzinfo=timezone.utc)
        record = project_item(make_item(9, created_at=created, assignees=("ana", "luis")))

        assert record.issue_number == 9
        assert record.issue_url == "https://github.com/acme/app/issues/9"
        assert record.assignees == ["ana", "luis"]
        assert record.created_at == created

    def test_empty_text_value_falls_back_to_default(self):
        item = make_item(1, fields=[FieldValue("Build Version", FieldKind.TEXT, "  ")])
        assert project_item(item).build_version == "N/A"

    def test_date_value_in_text_slot_is_iso_string(self):
        item = make_item(1, fields=[FieldValue("Build Version", FieldKind.DATE, date(2024, 6, 1))])
        assert project_item(item).build_version == "2024-06-01"


class TestTitleResolution:
    """Precedencia: campo "Title" > título del Issue > "No Title"."""

    def test_title_field_wins_over_content(self):
        item = make_item(1, title="From content", fields=[FieldValue("title", FieldKind.TEXT, "From field")])
        assert project_item(item).issue_title == "From field"

    def test_content_title_when_no_title_field(self):
        assert project_item(make_item(1, title="From content")).issue_title == "From content"

    def test_default_title_when_nothing_available(self):
        assert project_item(make_item(1, title="")).issue_title == "No Title"


class TestAssignees:
    def test_missing_content_is_unassigned(self):
        assert project_item(SourceItem(item_id="x")).assignees == ["Unassigned"]

    def test_missing_assignee_list_is_unassigned(self):
        item = SourceItem(item_id="x", content=IssueContent(number=3, assignees=None))
        assert project_item(item).assignees == ["Unassigned"]

    def test_empty_assignee_list_is_unassigned(self):
        assert project_item(make_item(3, assignees=())).assignees == ["Unassigned"]


class TestBuildFieldLookup:
    def test_first_match_wins_for_same_kind(self):
        lookup = build_field_lookup([
            FieldValue("Status", FieldKind.SINGLE_SELECT, "Todo"),
            FieldValue("status", FieldKind.SINGLE_SELECT, "Done"),
        ])
        assert lookup["status"].value == "Todo"

    def test_text_preferred_over_select_and_date(self):
        lookup = build_field_lookup([
            FieldValue("Build Version", FieldKind.DATE, date(2024, 1, 1)),
            FieldValue("Build Version", FieldKind.SINGLE_SELECT, "beta"),
            FieldValue("Build Version", FieldKind.TEXT, "1.0.0"),
        ])
        assert lookup["build version"].value == "1.0.0"

    def test_select_preferred_over_date(self):
        lookup = build_field_lookup([
            FieldValue("Timeline", FieldKind.DATE, date(2024, 1, 1)),
            FieldValue("Timeline", FieldKind.SINGLE_SELECT, "Q1"),
        ])
        assert lookup["timeline"].kind == FieldKind.SINGLE_SELECT

    def test_unparseable_timeline_falls_back_to_default(self):
        item = make_item(1, fields=[FieldValue("Timeline", FieldKind.SINGLE_SELECT, "Q1")])
        assert project_item(item).timeline is None
