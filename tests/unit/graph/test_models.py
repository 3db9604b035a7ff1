"""Unit tests for graph/models.py — JSON mapping of drives, items and versions."""

from datetime import UTC, datetime

from onedrive_versions.graph.models import Drive, DriveItem, Version, parse_timestamp


class TestDriveItem:
    def test_from_json_reads_parent_drive_id(self) -> None:
        item = DriveItem.from_json(
            {"id": "item-001", "name": "plan.md", "parentReference": {"driveId": "drive-b"}}
        )
        assert item == DriveItem(id="item-001", name="plan.md", drive_id="drive-b")

    def test_from_json_without_parent_reference(self) -> None:
        item = DriveItem.from_json({"id": "item-001", "name": "plan.md"})
        assert item.drive_id is None


class TestDrive:
    def test_from_json_defaults_missing_fields(self) -> None:
        drive = Drive.from_json({"id": "d1"})
        assert drive == Drive(id="d1", name="", drive_type="", web_url="")

    def test_from_json_reads_web_url(self) -> None:
        drive = Drive.from_json(
            {
                "id": "d1",
                "name": "Documents",
                "driveType": "documentLibrary",
                "webUrl": "https://contoso.sharepoint.com/sites/Board/Shared%20Documents",
            }
        )
        assert drive.drive_type == "documentLibrary"
        assert drive.web_url.endswith("Shared%20Documents")


class TestVersion:
    def test_from_json_with_all_fields(self) -> None:
        version = Version.from_json(
            {
                "id": "3.0",
                "lastModifiedDateTime": "2024-03-01T10:15:00Z",
                "size": 2048,
                "lastModifiedBy": {"user": {"displayName": "Alice"}},
            }
        )
        assert version.id == "3.0"
        assert version.last_modified == datetime(2024, 3, 1, 10, 15, tzinfo=UTC)
        assert version.size == 2048
        assert version.modified_by == "Alice"

    def test_from_json_with_optional_fields_missing(self) -> None:
        version = Version.from_json({"id": "1.0", "lastModifiedDateTime": "2024-01-01T00:00:00Z"})
        assert version.size is None
        assert version.modified_by is None


class TestParseTimestamp:
    def test_seven_fractional_digits(self) -> None:
        parsed = parse_timestamp("2024-05-06T07:08:09.1234567Z")
        assert parsed == datetime(2024, 5, 6, 7, 8, 9, 123456, tzinfo=UTC)

    def test_offset_is_preserved(self) -> None:
        parsed = parse_timestamp("2024-05-06T09:08:09+02:00")
        assert parsed == datetime(2024, 5, 6, 7, 8, 9, tzinfo=UTC)

    def test_malformed_value_sorts_oldest(self) -> None:
        assert parse_timestamp("not a date") == datetime.min.replace(tzinfo=UTC)
        assert parse_timestamp("") == datetime.min.replace(tzinfo=UTC)
