"""Curated fallback videos per topic family and learner level."""
import re

_VIDEO_ID_RE = re.compile(r"^.*(youtu\.be/|v/|e/|u/\w+/|embed/|v=)([^#&?]*).*")
VIDEO_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11}$")

BEGINNER = "beginner"
INTERMEDIATE = "intermediate"
ADVANCED = "advanced"


def extract_video_id(url_or_id: str) -> str:
    """Pull the 11-character id out of any common YouTube URL; return the input otherwise."""
    value = (url_or_id or "").strip()
    match = _VIDEO_ID_RE.match(value)
    if match and len(match.group(2)) == 11:
        return match.group(2)
    return value


def _ids(*urls: str) -> list[str]:
    return [extract_video_id(url) for url in urls]


ALGEBRA_VIDEOS = {
    BEGINNER: ["NybHckSEQBI", "V3dFHt9p5W8", "grnP3mduZkM"],
    INTERMEDIATE: ["0EnklHkVKXI", "bEMIicZhUCM", "vDqOoI-4Z6M"],
    ADVANCED: ["LwCRRUa8yTU", "ab-ZrHKjGNo", "zPgfIOWVnF4"],
}

GEOMETRY_VIDEOS = {
    BEGINNER: _ids(
        "https://youtu.be/302eJ3TzJQU",
        "https://youtu.be/k5etrWdIY6o",
        "https://youtu.be/F9EcdfyFXyw",
    ),
    INTERMEDIATE: _ids(
        "https://youtu.be/WqzK3UAXaHs",
        "https://youtu.be/MD1Ob370TIA",
        "https://youtu.be/KtZai86htng",
    ),
    ADVANCED: _ids(
        "https://youtu.be/KtZai86htng",
        "https://youtu.be/_n3KZR1DSEo",
    ),
}

QUADRATIC_VIDEOS = {
    BEGINNER: _ids(
        "https://youtu.be/IWigvJcCAJ0",
        "https://www.youtube.com/watch?v=PDIudNFEoGw",
    ),
    INTERMEDIATE: _ids(
        "https://www.youtube.com/watch?v=C206SNAXDGE",
        "https://www.youtube.com/watch?v=NC4fafUID2g",
        "https://www.youtube.com/watch?v=s0ZbFInqWjc",
    ),
    ADVANCED: _ids(
        "https://www.youtube.com/watch?v=x-7unt67FL0",
        "https://www.youtube.com/watch?v=fGFh-LHD874",
        "https://www.youtube.com/watch?v=oSRRXm-N0Jg",
    ),
}

TRIGONOMETRY_VIDEOS = {
    BEGINNER: _ids(
        "https://www.youtube.com/watch?v=PUB0TaZ7bhA",
        "https://www.youtube.com/watch?v=oG_ZbhyLkgE",
        "https://www.youtube.com/watch?v=pKsAC7UptNI",
    ),
    INTERMEDIATE: _ids(
        "https://www.youtube.com/watch?v=G4TUYzFtHmk",
        "https://www.youtube.com/watch?v=y3eqCllxeAY",
        "https://www.youtube.com/watch?v=FQ4U2AQimCU",
    ),
    ADVANCED: _ids(
        "https://www.youtube.com/watch?v=pI11dYFay28",
        "https://www.youtube.com/watch?v=IoJqx9j1pYc",
        "https://www.youtube.com/watch?v=KIejV-LwzNc",
    ),
}

LINEAR_EQUATION_VIDEOS = {
    BEGINNER: _ids(
        "https://www.youtube.com/watch?v=Fs5Fwlk7-Sc",
        "https://www.youtube.com/watch?v=7DPWeBszNSM",
        "https://www.youtube.com/watch?v=-t4l0MKGIgM",
    ),
    INTERMEDIATE: _ids(
        "https://www.youtube.com/watch?v=utJ4dRvaVNo",
        "https://www.youtube.com/watch?v=DEi3A65kV3g",
        "https://www.youtube.com/watch?v=crJI4iZ_DbI",
    ),
    ADVANCED: _ids(
        "https://www.youtube.com/watch?v=ku2KKUzx3ZY",
        "https://www.youtube.com/watch?v=kYAoezPdwnE",
        "https://www.youtube.com/watch?v=bxNEuVrMyyE",
    ),
}


def videos_for_topic(topic: str) -> dict[str, list[str]]:
    title = (topic or "").lower()
    if "geometry" in title:
        return GEOMETRY_VIDEOS
    if "quadratic" in title:
        return QUADRATIC_VIDEOS
    if "trigonometry" in title:
        return TRIGONOMETRY_VIDEOS
    if "linear equation" in title or "linear algebra" in title:
        return LINEAR_EQUATION_VIDEOS
    return ALGEBRA_VIDEOS


def videos_for_level(topic: str, level: str) -> list[str]:
    table = videos_for_topic(topic)
    key = (level or "").strip().lower()
    if key not in (BEGINNER, INTERMEDIATE):
        key = ADVANCED  # advanced, expert and anything else
    return table[key]
