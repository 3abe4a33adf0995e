"""App identity helpers: package -> display name, file name -> app name, category."""

import re
from types import MappingProxyType

from framepace.models import UNKNOWN_APP, UNKNOWN_PACKAGE

PACKAGE_APP_NAMES = MappingProxyType({
    "com.netflix.mediaclient": "Netflix",
    "com.netflix.NGP.ProjectKraken": "SquidGames: Unleashed",
    "com.google.android.youtube": "YouTube",
    "com.facebook.katana": "Facebook",
    "com.instagram.android": "Instagram",
    "com.whatsapp": "WhatsApp",
    "com.spotify.music": "Spotify",
    "com.twitter.android": "Twitter",
    "com.snapchat.android": "Snapchat",
    "com.tencent.mm": "WeChat",
    "com.pubg.imobile": "PUBG Mobile",
    "com.king.candycrushsaga": "Candy Crush Saga",
    "com.supercell.clashofclans": "Clash of Clans",
    "com.mojang.minecraftpe": "Minecraft",
    "com.ea.gp.fifamobile": "FIFA Mobile",
    "com.miHoYo.GenshinImpact": "Genshin Impact",
    "com.tencent.ig": "PUBG Mobile",
    "com.garena.game.fctw": "Free Fire",
    "com.roblox.client": "Roblox",
    "com.discord": "Discord",
    "com.zhiliaoapp.musically": "TikTok",
    "com.ss.android.ugc.trill": "TikTok",
    "com.amazon.mShop.android.shopping": "Amazon",
    "com.ubercab": "Uber",
    "com.airbnb.android": "Airbnb",
    "com.paypal.android.p2pmobile": "PayPal",
    "com.microsoft.office.outlook": "Outlook",
    "com.google.android.apps.maps": "Google Maps",
    "com.google.android.gm": "Gmail",
    "com.google.android.apps.photos": "Google Photos",
    "com.android.chrome": "Chrome",
    "com.opera.browser": "Opera",
    "org.mozilla.firefox": "Firefox",
    "com.microsoft.emmx": "Edge"
})

# Checked in order against the lower-cased package name.
APP_NAME_HINTS: tuple[tuple[str, str], ...] = (
    ("netflix", "Netflix"),
    ("youtube", "YouTube"),
    ("pubg", "PUBG Mobile"),
    ("genshin", "Genshin Impact"),
    ("minecraft", "Minecraft"),
    ("discord", "Discord"),
    ("tiktok", "TikTok"),
    ("chrome", "Chrome")
)

_UPPERCASE_WORDS = {"FPS", "GPU", "CPU", "API", "UI", "UX", "AI", "ML", "AR", "VR", "HD", "QR"}
_ROMAN_NUMERAL = re.compile(r"^[IVX]+$", re.IGNORECASE)


def derive_app_name_from_package(package_name: str | None) -> str:
    """
    Derive a user-facing app name from an Android package identifier.

    Resolution order: exact table match, substring hints, then the last dot
    segment with its first letter upper-cased (only for packages with at least
    three segments). Anything else is "Unknown App".
    """
    if not package_name or package_name == UNKNOWN_PACKAGE:
        return UNKNOWN_APP

    mapped = PACKAGE_APP_NAMES.get(package_name)
    if mapped:
        return mapped

    lower_package = package_name.lower()
    for token, app_name in APP_NAME_HINTS:
        if token in lower_package:
            return app_name

    parts = package_name.split(".")
    if len(parts) >= 3:
        last_part = parts[-1]
        return last_part[:1].upper() + last_part[1:]

    return UNKNOWN_APP


def extract_package_name(test_id: str | None) -> str | None:
    """Best-effort package guess from a test ID: first three dot segments."""
    if test_id and "." in test_id:
        parts = test_id.split(".")
        if len(parts) >= 3:
            return ".".join(parts[:3])
    return None


def _title_word(word: str) -> str:
    if not word:
        return ""
    if word.upper() in _UPPERCASE_WORDS:
        return word.upper()
    if _ROMAN_NUMERAL.match(word):
        return word.upper()
    return word[:1].upper() + word[1:].lower()


def format_file_name_to_app_name(file_name: str | None) -> str:
    """Turn snake_case, kebab-case, camelCase or PascalCase file names into Title Case."""
    if not file_name:
        return UNKNOWN_APP

    name = re.sub(r"\.[^/.]+$", "", file_name)
    if re.search(r"[_\-\s]", name):
        words = re.split(r"[_\-\s]+", name)
    else:
        words = [word for word in re.split(r"(?=[A-Z])", name) if word]
    if not words:
        words = [name]

    formatted = " ".join(_title_word(word) for word in words).strip()
    return formatted or UNKNOWN_APP


def infer_app_category(app_name: str | None, package_name: str | None) -> str:
    name = (app_name or "").lower()
    package = (package_name or "").lower()

    if "game" in name or "game" in package or "unity" in package or "racing" in name:
        return "Gaming"
    if "benchmark" in name or "test" in name:
        return "Benchmark"
    if any(token in name for token in ["video", "media", "stream"]):
        return "Media"
    if any(token in name for token in ["browser", "chrome", "firefox"]):
        return "Browser"
    return "Productivity"
