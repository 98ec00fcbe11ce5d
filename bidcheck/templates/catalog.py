"""Built-in bid request templates."""

import json

from bidcheck.models.enums import AdType
from bidcheck.models.template import SampleTemplate

_IMAGE_MIMES = ["image/jpeg", "image/png", "image/gif"]

_NATIVE_REQUEST = {
    "ver": "1.2",
    "layout": 1,
    "assets": [
        {"id": 1, "required": 1, "title": {"len": 90}},
        {"id": 2, "required": 1, "img": {"type": 3, "w": 300, "h": 250}},
        {"id": 3, "required": 0, "data": {"type": 2, "len": 140}},
    ],
}


def default_templates() -> list[SampleTemplate]:
    return [
        SampleTemplate(
            id="basic-display-banner",
            name="Basic Display Banner",
            description="Standard 300x250 display banner ad template",
            ad_type=AdType.DISPLAY,
            request={
                "id": "template-request-001",
                "imp": [
                    {
                        "id": "1",
                        "banner": {
                            "w": 300,
                            "h": 250,
                            "pos": 1,
                            "mimes": list(_IMAGE_MIMES),
                            "format": [{"w": 300, "h": 250}],
                        },
                        "bidfloor": 0.5,
                        "bidfloorcur": "USD",
                    }
                ],
                "at": 1,
                "tmax": 100,
                "cur": ["USD"],
            },
            tags=["display", "banner", "standard", "300x250"],
        ),
        SampleTemplate(
            id="leaderboard-banner",
            name="Leaderboard Banner",
            description="728x90 leaderboard banner ad template",
            ad_type=AdType.DISPLAY,
            request={
                "id": "template-request-002",
                "imp": [
                    {
                        "id": "1",
                        "banner": {
                            "w": 728,
                            "h": 90,
                            "pos": 1,
                            "mimes": list(_IMAGE_MIMES),
                            "format": [{"w": 728, "h": 90}],
                        },
                        "bidfloor": 1.0,
                        "bidfloorcur": "USD",
                    }
                ],
                "at": 1,
                "tmax": 100,
                "cur": ["USD"],
            },
            tags=["display", "banner", "leaderboard", "728x90"],
        ),
        SampleTemplate(
            id="mobile-app-banner",
            name="Mobile App Banner",
            description="320x50 in-app banner with app and device context",
            ad_type=AdType.DISPLAY,
            request={
                "id": "template-request-006",
                "imp": [
                    {
                        "id": "1",
                        "banner": {"w": 320, "h": 50, "pos": 5, "mimes": list(_IMAGE_MIMES)},
                        "bidfloor": 0.25,
                        "bidfloorcur": "USD",
                    }
                ],
                "app": {
                    "id": "app-001",
                    "name": "Sample App",
                    "bundle": "com.example.sampleapp",
                },
                "device": {
                    "ua": "Mozilla/5.0 (Linux; Android 14) AppleWebKit/537.36",
                    "ip": "192.0.2.1",
                    "devicetype": 4,
                    "connectiontype": 2,
                    "lmt": 0,
                },
                "at": 1,
                "tmax": 120,
                "cur": ["USD"],
            },
            tags=["display", "banner", "mobile", "app", "320x50"],
        ),
        SampleTemplate(
            id="video-preroll",
            name="Video Pre-roll",
            description="Standard video pre-roll ad template",
            ad_type=AdType.VIDEO,
            request={
                "id": "template-request-003",
                "imp": [
                    {
                        "id": "1",
                        "video": {
                            "mimes": ["video/mp4", "video/webm"],
                            "minduration": 15,
                            "maxduration": 30,
                            "protocols": [2, 3, 5, 6],
                            "w": 640,
                            "h": 480,
                            "startdelay": 0,
                            "placement": 1,
                            "linearity": 1,
                            "skip": 1,
                            "skipmin": 5,
                            "skipafter": 5,
                        },
                        "bidfloor": 2.0,
                        "bidfloorcur": "USD",
                    }
                ],
                "at": 1,
                "tmax": 100,
                "cur": ["USD"],
            },
            tags=["video", "preroll", "skippable"],
        ),
        SampleTemplate(
            id="native-feed",
            name="Native Feed Ad",
            description="Native in-feed ad template for social media feeds",
            ad_type=AdType.NATIVE,
            request={
                "id": "template-request-004",
                "imp": [
                    {
                        "id": "1",
                        "native": {
                            "request": json.dumps(_NATIVE_REQUEST),
                            "ver": "1.2",
                            "api": [3, 5],
                        },
                        "bidfloor": 1.5,
                        "bidfloorcur": "USD",
                    }
                ],
                "at": 1,
                "tmax": 100,
                "cur": ["USD"],
            },
            tags=["native", "feed", "social"],
        ),
        SampleTemplate(
            id="audio-podcast",
            name="Audio Podcast Ad",
            description="Audio ad template for podcast insertion",
            ad_type=AdType.AUDIO,
            request={
                "id": "template-request-005",
                "imp": [
                    {
                        "id": "1",
                        "audio": {
                            "mimes": ["audio/mp3", "audio/aac"],
                            "minduration": 15,
                            "maxduration": 30,
                            "protocols": [2, 3, 5, 6],
                            "startdelay": 0,
                            "feed": 1,
                            "stitched": 1,
                        },
                        "bidfloor": 1.0,
                        "bidfloorcur": "USD",
                    }
                ],
                "at": 1,
                "tmax": 100,
                "cur": ["USD"],
            },
            tags=["audio", "podcast", "streaming"],
        ),
    ]
