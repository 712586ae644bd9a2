"""
Tests for reference / project number allocation and uniqueness.

Run with: pytest tests/test_identifiers.py -v
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.identifiers import (
    all_project_numbers,
    generate_unique_id,
    is_duplicate_project_number,
    is_duplicate_reference,
    is_valid_uuid,
    next_project_number,
    next_reference,
    parse_reference_format,
)
from models import ClientFile, Project


def _file(file_id, reference=None, project_numbers=()):
    return ClientFile(
        id=file_id,
        name=f"Client {file_id}",
        reference=reference,
        projects=[
            Project(id=f"{file_id}-p{i}", name=f"Project {i}", project_number=n)
            for i, n in enumerate(project_numbers)
        ],
    )


class TestParseReferenceFormat:
    """Tests for splitting a format example into prefix and padding."""

    def test_trailing_digits(self):
        assert parse_reference_format("PRJ-0007") == ("PRJ-", 4)
        assert parse_reference_format("REF-001") == ("REF-", 3)

    def test_only_trailing_run_is_numeric(self):
        """Digits in the middle stay part of the prefix."""
        assert parse_reference_format("STU-2024-0001") == ("STU-2024-", 4)

    def test_all_digits(self):
        assert parse_reference_format("42") == ("", 2)

    def test_no_trailing_digits(self):
        assert parse_reference_format("CLIENT") == ("CLIENT-", 3)

    def test_empty_uses_default_example(self):
        assert parse_reference_format("") == ("REF-", 3)
        assert parse_reference_format(None) == ("REF-", 3)

    def test_whitespace_only_falls_back(self):
        assert parse_reference_format("   ") == ("REF-", 3)

    def test_example_is_trimmed(self):
        assert parse_reference_format("  INV-01  ") == ("INV-", 2)


class TestNextReference:
    """Tests for max-plus-one allocation."""

    def test_empty_population(self):
        assert next_reference([], "PRJ-0007") == "PRJ-0001"

    def test_max_plus_one_ignores_gaps(self):
        assert next_reference(["PRJ-0001", "PRJ-0003"], "PRJ-0001") == "PRJ-0004"

    def test_prefix_match_is_case_sensitive(self):
        assert next_reference(["prj-0009"], "PRJ-0001") == "PRJ-0001"

    def test_non_numeric_and_zero_tails_ignored(self):
        existing = ["REF-abc", "REF-000", "REF-12a", "REF-", None, "", "REF-002"]
        assert next_reference(existing, "REF-001") == "REF-003"

    def test_other_prefixes_ignored(self):
        assert next_reference(["INV-050", "REF-004"], "REF-001") == "REF-005"

    def test_number_wider_than_pad(self):
        assert next_reference(["REF-999"], "REF-001") == "REF-1000"

    def test_no_digit_example(self):
        assert next_reference(["ACME-007"], "ACME") == "ACME-008"

    def test_deleted_values_are_not_reused(self):
        """Only the current maximum matters, lower gaps are never refilled."""
        assert next_reference(["REF-010"], "REF-001") == "REF-011"


class TestDuplicateReference:
    """Tests for client reference uniqueness."""

    def setup_method(self):
        self.files = [_file("f1", "acme"), _file("f2", "REF-002"), _file("f3")]

    def test_case_and_whitespace_insensitive(self):
        assert is_duplicate_reference(self.files, " Acme ") is True
        assert is_duplicate_reference(self.files, "ref-002") is True

    def test_blank_is_never_duplicate(self):
        assert is_duplicate_reference(self.files, "") is False
        assert is_duplicate_reference(self.files, "   ") is False
        assert is_duplicate_reference(self.files, None) is False

    def test_excludes_file_being_edited(self):
        assert is_duplicate_reference(self.files, "ACME", exclude_file_id="f1") is False
        assert is_duplicate_reference(self.files, "ACME", exclude_file_id="f2") is True

    def test_unused_reference(self):
        assert is_duplicate_reference(self.files, "REF-003") is False


class TestProjectNumbers:
    """Tests for project numbers, unique across every file."""

    def setup_method(self):
        self.files = [
            _file("f1", "REF-001", ["PRJ-0001", "PRJ-0002"]),
            _file("f2", "REF-002", ["PRJ-0005", None]),
        ]

    def test_all_project_numbers_skips_empty(self):
        assert all_project_numbers(self.files) == ["PRJ-0001", "PRJ-0002", "PRJ-0005"]

    def test_duplicate_across_files(self):
        assert is_duplicate_project_number(self.files, "prj-0005") is True
        assert is_duplicate_project_number(self.files, " PRJ-0001 ") is True

    def test_duplicate_excludes_project_being_edited(self):
        assert is_duplicate_project_number(self.files, "PRJ-0005", exclude_project_id="f2-p0") is False

    def test_independent_of_references(self):
        assert is_duplicate_project_number(self.files, "REF-001") is False

    def test_blank_is_never_duplicate(self):
        assert is_duplicate_project_number(self.files, " ") is False

    def test_next_project_number_scans_all_files(self):
        assert next_project_number(self.files, "PRJ-0001") == "PRJ-0006"


class TestIds:
    """Tests for opaque id helpers."""

    def test_generate_unique_id(self):
        a = generate_unique_id("file")
        b = generate_unique_id("file")
        assert a.startswith("file-")
        assert a != b
        assert is_valid_uuid(a[len("file-"):])

    def test_is_valid_uuid(self):
        assert is_valid_uuid("3f2b8c1e-9a4d-4e2f-8b1a-2c3d4e5f6a7b") is True
        assert is_valid_uuid("not-a-uuid") is False
        assert is_valid_uuid(None) is False
