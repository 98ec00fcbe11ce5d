"""OpenRTB rule sets applied on top of structural validation.

Each rule set is a function ``(request) -> RuleOutcome``. Rules only run
for mapping requests but must tolerate wrongly-typed members, since
structural problems are reported separately.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from bidcheck.models.enums import AuctionType, BannerPosition, ConnectionType, DeviceType, ErrorType
from bidcheck.models.validation import ValidationError, ValidationWarning
from bidcheck.validation.openrtb import ISO_4217_CURRENCIES

MIN_BIRTH_YEAR = 1900
MAX_AGE_YEARS = 120
LOW_TMAX_MS = 50
HIGH_TMAX_MS = 1000

STANDARD_BANNER_SIZES = frozenset(
    {
        (300, 250), (728, 90), (320, 50), (160, 600), (300, 600), (970, 250),
        (320, 100), (468, 60), (234, 60), (120, 600), (120, 240), (125, 125),
    }
)  # fmt: skip


@dataclass
class RuleOutcome:
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationWarning] = field(default_factory=list)

    def extend(self, other: "RuleOutcome") -> None:
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)


Rule = Callable[[Mapping[str, Any]], RuleOutcome]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _mapping(value: Any) -> Mapping[str, Any] | None:
    return value if isinstance(value, Mapping) else None


def _impressions(request: Mapping[str, Any]) -> list[tuple[int, Mapping[str, Any]]]:
    imps = request.get("imp")
    if not isinstance(imps, list):
        return []
    return [(i, imp) for i, imp in enumerate(imps) if isinstance(imp, Mapping)]


# ── Business logic ──────────────────────────────────────────────────────────


def business_rules(request: Mapping[str, Any]) -> RuleOutcome:
    out = RuleOutcome()
    impressions = _impressions(request)

    seen: set[Any] = set()
    for index, imp in impressions:
        imp_id = imp.get("id")
        if imp_id is None or isinstance(imp_id, (dict, list)):
            continue
        if imp_id in seen:
            out.errors.append(
                ValidationError(
                    field=f"imp.{index}.id",
                    message=(
                        f"Duplicate impression ID '{imp_id}' found. "
                        "Impression IDs must be unique within a request."
                    ),
                    code="ORTB_DUPLICATE_IMPRESSION_ID",
                    type=ErrorType.LOGICAL,
                    actual_value=imp_id,
                    expected_value="Unique impression ID",
                    suggestion="Ensure each impression has a unique ID within the request",
                )
            )
        seen.add(imp_id)

    for index, imp in impressions:
        if all(imp.get(fmt) is None for fmt in ("banner", "video", "audio", "native")):
            out.errors.append(
                ValidationError(
                    field=f"imp.{index}",
                    message="Impression must specify at least one ad format (banner, video, audio, or native)",
                    code="ORTB_MISSING_AD_FORMAT",
                    type=ErrorType.LOGICAL,
                    expected_value="banner, video, audio, or native object",
                    suggestion="Add banner, video, audio, or native object to the impression",
                )
            )

    for index, imp in impressions:
        currency = imp.get("bidfloorcur")
        if currency and not _known_currency(currency):
            out.warnings.append(_currency_warning(f"imp.{index}.bidfloorcur", currency))

    currencies = request.get("cur")
    if isinstance(currencies, list):
        for index, currency in enumerate(currencies):
            if currency and not _known_currency(currency):
                out.warnings.append(_currency_warning(f"cur.{index}", currency))

    test = request.get("test")
    if test is not None and test not in (0, 1):
        out.warnings.append(
            ValidationWarning(
                field="test",
                message="Test flag should be 0 (live) or 1 (test mode)",
                code="ORTB_INVALID_TEST_FLAG",
                actual_value=test,
                recommended_value="0 or 1",
                suggestion="Set test to 0 for live traffic or 1 for test mode",
            )
        )
    return out


def _known_currency(code: Any) -> bool:
    return isinstance(code, str) and code in ISO_4217_CURRENCIES


def _currency_warning(path: str, currency: Any) -> ValidationWarning:
    return ValidationWarning(
        field=path,
        message=f"Currency code '{currency}' may not be a valid ISO-4217 code",
        code="ORTB_INVALID_CURRENCY_CODE",
        actual_value=currency,
        recommended_value="Valid ISO-4217 currency code (e.g., USD, EUR, GBP)",
        suggestion="Use a valid ISO-4217 currency code",
    )


# ── Cross-field ─────────────────────────────────────────────────────────────


def _flag_warning(device: Mapping[str, Any], name: str, label: str, meaning: str) -> ValidationWarning | None:
    value = device.get(name)
    if value is None or value in (0, 1):
        return None
    return ValidationWarning(
        field=f"device.{name}",
        message=f"{label} ({name}) should be 0 (tracking allowed) or 1 ({meaning})",
        code=f"ORTB_INVALID_{name.upper()}_VALUE",
        actual_value=value,
        recommended_value="0 or 1",
        suggestion=f"Set {name} to 0 to allow tracking or 1 for {meaning}",
    )


def cross_field_rules(request: Mapping[str, Any]) -> RuleOutcome:
    out = RuleOutcome()

    if request.get("site") is not None and request.get("app") is not None:
        out.errors.append(
            ValidationError(
                field="site/app",
                message="Request cannot contain both site and app objects - they are mutually exclusive",
                code="ORTB_SITE_APP_MUTUAL_EXCLUSION",
                type=ErrorType.LOGICAL,
                actual_value="both site and app present",
                expected_value="either site or app, not both",
                suggestion="Remove either the site or app object, depending on your inventory type",
            )
        )

    device = _mapping(request.get("device"))
    if device is not None:
        for name, label, meaning in (
            ("lmt", "Limit Ad Tracking", "limit tracking"),
            ("dnt", "Do Not Track", "do not track"),
        ):
            warning = _flag_warning(device, name, label, meaning)
            if warning is not None:
                out.warnings.append(warning)

    user = _mapping(request.get("user"))
    yob = user.get("yob") if user is not None else None
    if _is_number(yob):
        current_year = datetime.now().year
        if yob < MIN_BIRTH_YEAR or yob > current_year:
            out.warnings.append(
                ValidationWarning(
                    field="user.yob",
                    message=f"Year of birth {yob} seems unrealistic",
                    code="ORTB_UNREALISTIC_BIRTH_YEAR",
                    actual_value=yob,
                    recommended_value=f"Year between {current_year - MAX_AGE_YEARS} and {current_year}",
                    suggestion="Verify the year of birth is correct",
                )
            )

    tmax = request.get("tmax")
    if _is_number(tmax):
        if tmax < LOW_TMAX_MS:
            out.warnings.append(
                ValidationWarning(
                    field="tmax",
                    message="Timeout (tmax) is very low and may result in fewer bids",
                    code="ORTB_LOW_TIMEOUT",
                    actual_value=tmax,
                    recommended_value="100-300ms",
                    suggestion="Consider increasing timeout to allow more bidders to respond",
                )
            )
        elif tmax > HIGH_TMAX_MS:
            out.warnings.append(
                ValidationWarning(
                    field="tmax",
                    message="Timeout (tmax) is very high and may slow down ad serving",
                    code="ORTB_HIGH_TIMEOUT",
                    actual_value=tmax,
                    recommended_value="100-300ms",
                    suggestion="Consider reducing timeout for faster ad serving",
                )
            )
    return out


# ── Enumerated values ───────────────────────────────────────────────────────


def _enum_values(enum: type[AuctionType | DeviceType | ConnectionType | BannerPosition]) -> tuple[int, ...]:
    return tuple(member.value for member in enum)


def enum_rules(request: Mapping[str, Any]) -> RuleOutcome:
    out = RuleOutcome()

    at = request.get("at")
    if at is not None and (isinstance(at, bool) or at not in _enum_values(AuctionType)):
        out.errors.append(
            ValidationError(
                field="at",
                message=f"Invalid auction type '{at}'. Must be 1 (First Price), 2 (Second Price), or 3 (Fixed Price)",
                code="ORTB_INVALID_AUCTION_TYPE",
                type=ErrorType.VALUE,
                actual_value=at,
                expected_value=[1, 2, 3],
                suggestion="Use 1 for First Price, 2 for Second Price, or 3 for Fixed Price auction",
            )
        )

    device = _mapping(request.get("device"))
    if device is not None:
        devicetype = device.get("devicetype")
        if devicetype is not None and devicetype not in _enum_values(DeviceType):
            out.warnings.append(
                ValidationWarning(
                    field="device.devicetype",
                    message=f"Device type '{devicetype}' is not a standard OpenRTB device type",
                    code="ORTB_INVALID_DEVICE_TYPE",
                    actual_value=devicetype,
                    recommended_value=list(_enum_values(DeviceType)),
                    suggestion=(
                        "Use standard device types: 1=Mobile, 2=PC, 3=TV, 4=Phone, "
                        "5=Tablet, 6=Connected Device, 7=Set Top Box"
                    ),
                )
            )
        connectiontype = device.get("connectiontype")
        if connectiontype is not None and connectiontype not in _enum_values(ConnectionType):
            out.warnings.append(
                ValidationWarning(
                    field="device.connectiontype",
                    message=f"Connection type '{connectiontype}' is not a standard OpenRTB connection type",
                    code="ORTB_INVALID_CONNECTION_TYPE",
                    actual_value=connectiontype,
                    recommended_value=list(_enum_values(ConnectionType)),
                    suggestion=(
                        "Use standard connection types: 0=Unknown, 1=Ethernet, 2=WiFi, "
                        "3=Cellular, 4=2G, 5=3G, 6=4G"
                    ),
                )
            )

    for index, imp in _impressions(request):
        banner = _mapping(imp.get("banner"))
        pos = banner.get("pos") if banner is not None else None
        if pos is not None and pos not in _enum_values(BannerPosition):
            out.warnings.append(
                ValidationWarning(
                    field=f"imp.{index}.banner.pos",
                    message=f"Banner position '{pos}' is not a standard OpenRTB position",
                    code="ORTB_INVALID_BANNER_POSITION",
                    actual_value=pos,
                    recommended_value=list(_enum_values(BannerPosition)),
                    suggestion=(
                        "Use standard positions: 0=Unknown, 1=Above Fold, 3=Below Fold, "
                        "4=Header, 5=Footer, 6=Sidebar, 7=Full Screen"
                    ),
                )
            )
    return out


# ── Numeric constraints ─────────────────────────────────────────────────────


def _non_positive(value: Any) -> bool:
    return _is_number(value) and value <= 0


def constraint_rules(request: Mapping[str, Any]) -> RuleOutcome:
    out = RuleOutcome()

    for index, imp in _impressions(request):
        banner = _mapping(imp.get("banner"))
        if banner is not None:
            width, height = banner.get("w"), banner.get("h")
            for name, value, label in (("w", width, "width"), ("h", height, "height")):
                if _non_positive(value):
                    out.errors.append(
                        ValidationError(
                            field=f"imp.{index}.banner.{name}",
                            message=f"Banner {label} must be greater than 0",
                            code=f"ORTB_INVALID_BANNER_{label.upper()}",
                            type=ErrorType.VALUE,
                            actual_value=value,
                            expected_value="> 0",
                            suggestion=f"Set banner {label} to a positive value",
                        )
                    )
            if (
                _is_number(width)
                and _is_number(height)
                and width > 0
                and height > 0
                and (width, height) not in STANDARD_BANNER_SIZES
            ):
                out.warnings.append(
                    ValidationWarning(
                        field=f"imp.{index}.banner",
                        message=f"Banner size {width}x{height} is not a standard IAB size",
                        code="ORTB_NON_STANDARD_BANNER_SIZE",
                        actual_value=f"{width}x{height}",
                        recommended_value="Standard IAB banner size",
                        suggestion="Consider using standard IAB banner sizes for better fill rates",
                    )
                )

        bidfloor = imp.get("bidfloor")
        if _is_number(bidfloor) and bidfloor < 0:
            out.errors.append(
                ValidationError(
                    field=f"imp.{index}.bidfloor",
                    message="Bid floor cannot be negative",
                    code="ORTB_NEGATIVE_BID_FLOOR",
                    type=ErrorType.VALUE,
                    actual_value=bidfloor,
                    expected_value=">= 0",
                    suggestion="Set bid floor to 0 or a positive value",
                )
            )

        video = _mapping(imp.get("video"))
        if video is not None:
            out.extend(_video_duration_rules(index, video))
    return out


def _video_duration_rules(index: int, video: Mapping[str, Any]) -> RuleOutcome:
    out = RuleOutcome()
    minimum, maximum = video.get("minduration"), video.get("maxduration")
    if _is_number(minimum) and _is_number(maximum) and minimum > maximum:
        out.errors.append(
            ValidationError(
                field=f"imp.{index}.video",
                message="Video minimum duration cannot be greater than maximum duration",
                code="ORTB_INVALID_VIDEO_DURATION",
                type=ErrorType.LOGICAL,
                actual_value={"minduration": minimum, "maxduration": maximum},
                expected_value="minduration <= maxduration",
                suggestion="Ensure minimum duration is less than or equal to maximum duration",
            )
        )
    for name, value, label, code in (
        ("minduration", minimum, "minimum", "ORTB_INVALID_MIN_DURATION"),
        ("maxduration", maximum, "maximum", "ORTB_INVALID_MAX_DURATION"),
    ):
        if _non_positive(value):
            out.errors.append(
                ValidationError(
                    field=f"imp.{index}.video.{name}",
                    message=f"Video {label} duration must be greater than 0",
                    code=code,
                    type=ErrorType.VALUE,
                    actual_value=value,
                    expected_value="> 0",
                    suggestion=f"Set {label} duration to a positive value in seconds",
                )
            )
    return out


DEFAULT_RULES: tuple[Rule, ...] = (business_rules, cross_field_rules, enum_rules, constraint_rules)


def apply_rules(request: Mapping[str, Any], rules: tuple[Rule, ...] = DEFAULT_RULES) -> RuleOutcome:
    outcome = RuleOutcome()
    for rule in rules:
        outcome.extend(rule(request))
    return outcome
