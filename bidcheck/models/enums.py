from enum import IntEnum, StrEnum


class EvictionPolicy(StrEnum):
    LRU = "lru"
    FIFO = "fifo"


class ComplianceLevel(StrEnum):
    COMPLIANT = "compliant"
    PARTIAL = "partial"
    NON_COMPLIANT = "non-compliant"


class ErrorType(StrEnum):
    REQUIRED_FIELD = "required-field"
    SCHEMA = "schema"
    VALUE = "value"
    LOGICAL = "logical"
    FORMAT = "format"


class FieldRequirement(StrEnum):
    REQUIRED = "required"
    RECOMMENDED = "recommended"
    OPTIONAL = "optional"


class AdType(StrEnum):
    DISPLAY = "display"
    VIDEO = "video"
    NATIVE = "native"
    AUDIO = "audio"


class AuctionType(IntEnum):
    FIRST_PRICE = 1
    SECOND_PRICE = 2
    FIXED_PRICE = 3


class DeviceType(IntEnum):
    MOBILE_TABLET = 1
    PERSONAL_COMPUTER = 2
    CONNECTED_TV = 3
    PHONE = 4
    TABLET = 5
    CONNECTED_DEVICE = 6
    SET_TOP_BOX = 7


class ConnectionType(IntEnum):
    UNKNOWN = 0
    ETHERNET = 1
    WIFI = 2
    CELLULAR_UNKNOWN = 3
    CELLULAR_2G = 4
    CELLULAR_3G = 5
    CELLULAR_4G = 6


class BannerPosition(IntEnum):
    UNKNOWN = 0
    ABOVE_THE_FOLD = 1
    DEPRECATED = 2
    BELOW_THE_FOLD = 3
    HEADER = 4
    FOOTER = 5
    SIDEBAR = 6
    FULL_SCREEN = 7
