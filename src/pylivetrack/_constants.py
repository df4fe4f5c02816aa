"""Internal constants shared across the library."""

FEED_URL = "https://skane-gtfsrt.etfnordic.workers.dev/api/vehicles"
USER_AGENT = "pylivetrack/1.0"

# Headers that ask every cache between us and the feed to stay out of the way.
NO_CACHE_HEADERS: dict[str, str] = {
    "accept": "application/json",
    "cache-control": "no-cache, no-store",
    "pragma": "no-cache",
}

# ------------------------------------------------------------------
# Category colours
# ------------------------------------------------------------------

#: Ordered (keyword, fill colour) pairs. Keywords are already folded
#: (lowercase, no diacritics); the first keyword found in the folded
#: description wins, so more specific words must come first.
CATEGORY_COLORS: tuple[tuple[str, str], ...] = (
    ("pagatag", "#7b2d8e"),
    ("oresundstag", "#5a6e7f"),
    ("tag", "#5a6e7f"),
    ("sparvagn", "#e35205"),
    ("sparvag", "#e35205"),
    ("express", "#f2b700"),
    ("regionbuss", "#ffd100"),
    ("stadsbuss", "#0a7f3f"),
    ("buss", "#0a7f3f"),
    ("farja", "#0072ce"),
    ("bat", "#0072ce"),
    ("anrop", "#8c8c8c"),
    ("taxi", "#8c8c8c"),
)

FALLBACK_FILL = "#3b82f6"

#: Stroke is the fill darkened by this fraction.
STROKE_DARKEN = 0.35

# Icons are keyed on whole degrees; sub-degree jitter must not trigger a re-render.
BEARING_SIGNATURE_STEP = 1.0

EARTH_RADIUS_M = 6_371_008.8
TILE_SIZE_PX = 256
