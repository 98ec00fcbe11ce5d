"""Embedded OpenRTB 2.6 bid request schema (JSON-schema subset)."""

from datetime import datetime
from typing import Any

ISO_4217_CURRENCIES = frozenset(
    {
        "USD", "EUR", "GBP", "JPY", "AUD", "CAD", "CHF", "CNY", "SEK", "NZD",
        "MXN", "SGD", "HKD", "NOK", "TRY", "ZAR", "BRL", "INR", "KRW", "PLN",
        "RUB", "THB", "CZK", "DKK", "HUF", "ILS", "CLP", "PHP", "AED", "COP",
        "SAR", "MYR", "RON", "BGN", "HRK", "ISK", "EGP", "QAR", "MAD", "JOD",
    }
)  # fmt: skip

RECOMMENDED_FIELDS = frozenset(
    {
        "device.ua",
        "device.ip",
        "site.domain",
        "site.page",
        "app.bundle",
        "user.id",
        "imp[].bidfloor",
        "imp[].banner.w",
        "imp[].banner.h",
        "imp[].video.mimes",
        "tmax",
        "cur",
    }
)

_FORMAT_ITEM: dict[str, Any] = {
    "type": "object",
    "properties": {
        "w": {"type": "integer", "minimum": 1},
        "h": {"type": "integer", "minimum": 1},
    },
}


def openrtb_26_schema() -> dict[str, Any]:
    """Return a fresh copy of the OpenRTB 2.6 request schema."""
    return {
        "type": "object",
        "required": ["id", "imp", "at"],
        "properties": {
            "id": {
                "type": "string",
                "description": "Unique ID of the bid request, provided by the exchange",
            },
            "imp": {
                "type": "array",
                "description": "Impression objects representing ad placements available for bidding",
                "minItems": 1,
                "items": {
                    "type": "object",
                    "required": ["id"],
                    "properties": {
                        "id": {
                            "type": "string",
                            "description": "Unique ID for this impression within the bid request",
                        },
                        "banner": {
                            "type": "object",
                            "description": "Banner impression object",
                            "properties": {
                                "w": {
                                    "type": "integer",
                                    "description": "Width of the impression in pixels",
                                    "minimum": 1,
                                },
                                "h": {
                                    "type": "integer",
                                    "description": "Height of the impression in pixels",
                                    "minimum": 1,
                                },
                                "pos": {
                                    "type": "integer",
                                    "description": "Ad position on screen",
                                },
                                "format": {
                                    "type": "array",
                                    "description": "Permitted banner sizes",
                                    "items": dict(_FORMAT_ITEM),
                                },
                                "mimes": {
                                    "type": "array",
                                    "description": "Supported content MIME types",
                                    "items": {"type": "string"},
                                },
                            },
                        },
                        "video": {
                            "type": "object",
                            "description": "Video impression object",
                            "properties": {
                                "mimes": {
                                    "type": "array",
                                    "description": "Content MIME types supported",
                                    "items": {"type": "string"},
                                },
                                "minduration": {
                                    "type": "integer",
                                    "description": "Minimum video ad duration in seconds",
                                },
                                "maxduration": {
                                    "type": "integer",
                                    "description": "Maximum video ad duration in seconds",
                                },
                                "w": {"type": "integer", "description": "Player width"},
                                "h": {"type": "integer", "description": "Player height"},
                            },
                        },
                        "audio": {
                            "type": "object",
                            "description": "Audio impression object",
                        },
                        "native": {
                            "type": "object",
                            "description": "Native impression object",
                        },
                        "bidfloor": {
                            "type": "number",
                            "description": "Minimum bid for this impression, CPM",
                            "minimum": 0,
                        },
                        "bidfloorcur": {
                            "type": "string",
                            "description": "Currency of the bid floor (ISO-4217)",
                            "default": "USD",
                        },
                    },
                },
            },
            "site": {
                "type": "object",
                "description": "Website where the impression will be shown",
                "properties": {
                    "id": {"type": "string", "description": "Site ID on the exchange"},
                    "name": {"type": "string", "description": "Site name"},
                    "domain": {"type": "string", "description": "Domain of the site"},
                    "page": {"type": "string", "description": "URL of the page"},
                },
            },
            "app": {
                "type": "object",
                "description": "Mobile application where the impression will be shown",
                "properties": {
                    "id": {"type": "string", "description": "App ID on the exchange"},
                    "name": {"type": "string", "description": "App name"},
                    "bundle": {"type": "string", "description": "App bundle or package name"},
                },
            },
            "device": {
                "type": "object",
                "description": "Device information",
                "properties": {
                    "ua": {"type": "string", "description": "User agent string"},
                    "ip": {"type": "string", "description": "IPv4 address"},
                    "devicetype": {
                        "type": "integer",
                        "description": "Device type",
                        "enum": [1, 2, 3, 4, 5, 6, 7],
                    },
                    "connectiontype": {
                        "type": "integer",
                        "description": "Network connection type",
                    },
                    "lmt": {"type": "integer", "description": "Limit ad tracking flag"},
                    "dnt": {"type": "integer", "description": "Do not track flag"},
                },
            },
            "user": {
                "type": "object",
                "description": "User information",
                "properties": {
                    "id": {"type": "string", "description": "Exchange-specific user ID"},
                    "yob": {
                        "type": "integer",
                        "description": "Year of birth",
                        "minimum": 1900,
                        "maximum": datetime.now().year,
                    },
                },
            },
            "at": {
                "type": "integer",
                "description": "Auction type",
                "enum": [1, 2, 3],
                "default": 2,
            },
            "tmax": {
                "type": "integer",
                "description": "Maximum time in milliseconds to submit a bid",
                "minimum": 1,
            },
            "test": {"type": "integer", "description": "Test mode flag"},
            "cur": {
                "type": "array",
                "description": "Allowed currencies for bids",
                "items": {"type": "string"},
                "default": ["USD"],
            },
        },
    }
