from datetime import datetime

import pytest

from bidcheck.models.enums import ErrorType
from bidcheck.validation.rules import (
    apply_rules,
    business_rules,
    constraint_rules,
    cross_field_rules,
    enum_rules,
)
from tests.factories import make_bid_request, make_impression


def _codes(findings) -> list[str]:
    return [f.code for f in findings]


class TestBusinessRules:
    def test_clean_request(self):
        out = business_rules(make_bid_request())
        assert out.errors == []
        assert out.warnings == []

    def test_duplicate_impression_ids(self):
        request = make_bid_request(imp=[make_impression(id="a"), make_impression(id="b"), make_impression(id="a")])
        out = business_rules(request)
        assert _codes(out.errors) == ["ORTB_DUPLICATE_IMPRESSION_ID"]
        assert out.errors[0].field == "imp.2.id"
        assert out.errors[0].type == ErrorType.LOGICAL

    def test_missing_ad_format(self):
        imp = {"id": "1", "bidfloor": 1.0}
        out = business_rules(make_bid_request(imp=[imp]))
        assert _codes(out.errors) == ["ORTB_MISSING_AD_FORMAT"]
        assert out.errors[0].field == "imp.0"

    @pytest.mark.parametrize("fmt", ["banner", "video", "audio", "native"])
    def test_any_format_satisfies(self, fmt):
        imp = {"id": "1", fmt: {}}
        assert business_rules(make_bid_request(imp=[imp])).errors == []

    def test_unknown_currency_is_warning(self):
        request = make_bid_request(imp=[make_impression(bidfloorcur="XYZ")])
        out = business_rules(request)
        assert out.errors == []
        assert _codes(out.warnings) == ["ORTB_INVALID_CURRENCY_CODE"]
        assert out.warnings[0].field == "imp.0.bidfloorcur"

    def test_unknown_currency_in_cur_array(self):
        out = business_rules(make_bid_request(cur=["USD", "ABC"]))
        assert [w.field for w in out.warnings] == ["cur.1"]

    @pytest.mark.parametrize("flag", [0, 1])
    def test_valid_test_flag(self, flag):
        assert business_rules(make_bid_request(test=flag)).warnings == []

    def test_invalid_test_flag(self):
        out = business_rules(make_bid_request(test=2))
        assert _codes(out.warnings) == ["ORTB_INVALID_TEST_FLAG"]

    def test_ignores_malformed_impressions(self):
        out = business_rules(make_bid_request(imp=["junk", 3]))
        assert out.errors == []

    def test_imp_not_a_list(self):
        assert business_rules(make_bid_request(imp="nope")).errors == []


class TestCrossFieldRules:
    def test_site_and_app_mutually_exclusive(self):
        out = cross_field_rules(make_bid_request(app={"bundle": "com.example"}))
        assert _codes(out.errors) == ["ORTB_SITE_APP_MUTUAL_EXCLUSION"]
        assert out.errors[0].field == "site/app"

    def test_site_and_app_empty_objects_still_conflict(self):
        out = cross_field_rules({"site": {}, "app": {}})
        assert _codes(out.errors) == ["ORTB_SITE_APP_MUTUAL_EXCLUSION"]

    def test_app_only_is_fine(self):
        request = make_bid_request(app={"bundle": "com.example"})
        del request["site"]
        assert cross_field_rules(request).errors == []

    def test_lmt_and_dnt_flags(self):
        out = cross_field_rules(make_bid_request(device={"lmt": 2, "dnt": 5}))
        assert _codes(out.warnings) == ["ORTB_INVALID_LMT_VALUE", "ORTB_INVALID_DNT_VALUE"]
        assert out.errors == []

    @pytest.mark.parametrize("yob", [1850, datetime.now().year + 1])
    def test_unrealistic_birth_year(self, yob):
        out = cross_field_rules(make_bid_request(user={"yob": yob}))
        assert _codes(out.warnings) == ["ORTB_UNREALISTIC_BIRTH_YEAR"]

    def test_realistic_birth_year(self):
        assert cross_field_rules(make_bid_request(user={"yob": 1985})).warnings == []

    def test_low_timeout(self):
        out = cross_field_rules(make_bid_request(tmax=10))
        assert _codes(out.warnings) == ["ORTB_LOW_TIMEOUT"]
        assert out.errors == []

    def test_high_timeout(self):
        out = cross_field_rules(make_bid_request(tmax=5000))
        assert _codes(out.warnings) == ["ORTB_HIGH_TIMEOUT"]

    @pytest.mark.parametrize("tmax", [50, 1000])
    def test_timeout_band_edges_are_fine(self, tmax):
        assert cross_field_rules(make_bid_request(tmax=tmax)).warnings == []

    def test_non_numeric_timeout_ignored(self):
        assert cross_field_rules(make_bid_request(tmax="slow")).warnings == []


class TestEnumRules:
    def test_invalid_auction_type_is_error(self):
        out = enum_rules(make_bid_request(at=5))
        assert _codes(out.errors) == ["ORTB_INVALID_AUCTION_TYPE"]
        assert out.errors[0].type == ErrorType.VALUE

    @pytest.mark.parametrize("at", [1, 2, 3])
    def test_valid_auction_types(self, at):
        assert enum_rules(make_bid_request(at=at)).errors == []

    def test_invalid_device_type_is_warning(self):
        out = enum_rules(make_bid_request(device={"devicetype": 9}))
        assert out.errors == []
        assert _codes(out.warnings) == ["ORTB_INVALID_DEVICE_TYPE"]

    def test_invalid_connection_type_is_warning(self):
        out = enum_rules(make_bid_request(device={"connectiontype": 7}))
        assert _codes(out.warnings) == ["ORTB_INVALID_CONNECTION_TYPE"]

    def test_invalid_banner_position_is_warning(self):
        request = make_bid_request(imp=[make_impression(banner={"w": 300, "h": 250, "pos": 9})])
        out = enum_rules(request)
        assert _codes(out.warnings) == ["ORTB_INVALID_BANNER_POSITION"]
        assert out.warnings[0].field == "imp.0.banner.pos"

    def test_unhashable_values_tolerated(self):
        out = enum_rules(make_bid_request(at=[1], device={"devicetype": {"x": 1}}))
        assert _codes(out.errors) == ["ORTB_INVALID_AUCTION_TYPE"]
        assert _codes(out.warnings) == ["ORTB_INVALID_DEVICE_TYPE"]


class TestConstraintRules:
    def test_non_positive_banner_dimensions(self):
        request = make_bid_request(imp=[make_impression(banner={"w": 0, "h": -10})])
        out = constraint_rules(request)
        assert _codes(out.errors) == ["ORTB_INVALID_BANNER_WIDTH", "ORTB_INVALID_BANNER_HEIGHT"]
        assert out.warnings == []

    def test_non_standard_size_is_warning(self):
        request = make_bid_request(imp=[make_impression(banner={"w": 333, "h": 222})])
        out = constraint_rules(request)
        assert out.errors == []
        assert _codes(out.warnings) == ["ORTB_NON_STANDARD_BANNER_SIZE"]
        assert out.warnings[0].actual_value == "333x222"

    def test_standard_size(self):
        request = make_bid_request(imp=[make_impression(banner={"w": 728, "h": 90})])
        assert constraint_rules(request).warnings == []

    def test_negative_bid_floor(self):
        out = constraint_rules(make_bid_request(imp=[make_impression(bidfloor=-0.01)]))
        assert _codes(out.errors) == ["ORTB_NEGATIVE_BID_FLOOR"]

    def test_zero_bid_floor_allowed(self):
        assert constraint_rules(make_bid_request(imp=[make_impression(bidfloor=0)])).errors == []

    def test_video_min_greater_than_max(self):
        imp = {"id": "1", "video": {"minduration": 30, "maxduration": 15}}
        out = constraint_rules(make_bid_request(imp=[imp]))
        assert _codes(out.errors) == ["ORTB_INVALID_VIDEO_DURATION"]
        assert out.errors[0].type == ErrorType.LOGICAL

    def test_video_non_positive_durations(self):
        imp = {"id": "1", "video": {"minduration": 0, "maxduration": -5}}
        out = constraint_rules(make_bid_request(imp=[imp]))
        assert set(_codes(out.errors)) == {
            "ORTB_INVALID_VIDEO_DURATION",
            "ORTB_INVALID_MIN_DURATION",
            "ORTB_INVALID_MAX_DURATION",
        }


class TestApplyRules:
    def test_merges_all_rule_sets(self):
        request = make_bid_request(at=7, tmax=5, app={"bundle": "x"})
        out = apply_rules(request)
        assert set(_codes(out.errors)) == {"ORTB_INVALID_AUCTION_TYPE", "ORTB_SITE_APP_MUTUAL_EXCLUSION"}
        assert _codes(out.warnings) == ["ORTB_LOW_TIMEOUT"]

    def test_custom_rule_tuple(self):
        request = make_bid_request(at=7, tmax=5)
        out = apply_rules(request, (cross_field_rules,))
        assert out.errors == []
        assert _codes(out.warnings) == ["ORTB_LOW_TIMEOUT"]
