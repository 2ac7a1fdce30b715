"""Tests for resolution data models."""

import pytest

from errors import StoreError
from sizing.models import (
    LookupStatus,
    PackageIdentity,
    SizeLookup,
    TraversalLimits,
    TraversalReport,
    normalize_version_spec,
)
from stores.base import PackageItem, artifact_key


@pytest.mark.parametrize("spec,expected", [
    ("^1.2.0", "1.2.0"),
    ("~1.2.0", "1.2.0"),
    ("1.2.0", "1.2.0"),
    (" ^1.2.0 ", "1.2.0"),
    ("^^1.0.0", "^1.0.0"),
    (">=1.0.0", ">=1.0.0"),
    ("", ""),
    (None, ""),
])
def test_normalize_version_spec(spec, expected):
    assert normalize_version_spec(spec) == expected


def test_identity_key_uses_normalized_version():
    assert PackageIdentity("lodash", "^4.17.21").key == "lodash@4.17.21"
    assert PackageIdentity("lodash", "~4.17.21").key == PackageIdentity("lodash", "4.17.21").key


def test_scoped_names_keep_their_scope():
    assert PackageIdentity("@types/node", "^20.1.0").key == "@types/node@20.1.0"


def test_size_lookup_constructors():
    err = StoreError("boom")
    assert SizeLookup.found("a@1", 1.5).status == LookupStatus.FOUND
    absent = SizeLookup.absent("a@1", "nothing there")
    assert (absent.status, absent.megabytes) == (LookupStatus.ABSENT, 0.0)
    failed = SizeLookup.failed("a@1", err)
    assert failed.error is err
    assert failed.reason == "boom"


def test_report_failures_lists_only_failed_lookups():
    report = TraversalReport()
    report.record(SizeLookup.found("a@1", 1.0))
    report.record(SizeLookup.failed("b@1", StoreError("x")))
    report.record(SizeLookup.absent("c@1", "none"))
    assert [lk.unit for lk in report.failures] == ["b@1"]


def test_limits_from_constants(restore_constants):
    restore_constants.MAX_DEPTH = 3
    restore_constants.MAX_UNITS = 7
    assert TraversalLimits.from_constants() == TraversalLimits(max_depth=3, max_units=7)


class TestPackageItem:
    """Building items from stored records."""

    def test_lower_case_record(self):
        item = PackageItem.from_record({"id": "left-pad", "name": "left-pad", "version": "1.0.0"})
        assert item.artifact_key == "left-pad-1.0.0"

    def test_capitalised_record_with_s3_key(self):
        record = {"ID": "pad", "Name": "left-pad", "Version": "1.0.0", "s3Key": "uploads/left-pad-1.0.0"}
        item = PackageItem.from_record(record)
        assert (item.id, item.name, item.artifact_key) == ("pad", "left-pad", "uploads/left-pad-1.0.0")

    def test_default_id(self):
        item = PackageItem.from_record({"name": "a", "version": "2"}, default_id="a-id")
        assert item.id == "a-id"

    def test_numeric_version_is_stringified(self):
        assert PackageItem.from_record({"id": "a", "name": "a", "version": 2}).version == "2"

    def test_incomplete_record_raises(self):
        with pytest.raises(StoreError):
            PackageItem.from_record({"id": "a", "name": "a"})


def test_artifact_key_appends_suffix_once():
    assert artifact_key("left-pad-1.0.0") == "left-pad-1.0.0.zip"
    assert artifact_key("left-pad-1.0.0.zip") == "left-pad-1.0.0.zip"
