"""pylivetrack - live public-transport vehicle tracking and animation engine."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pylivetrack")
except PackageNotFoundError:
    __version__ = "0+local"
from pylivetrack.animation import Animation, MotionAnimator
from pylivetrack.config import ExpiryPolicy, TrackerConfig
from pylivetrack.engine import SnapshotReport, TrackingEngine
from pylivetrack.exceptions import (
    EngineNotStartedError,
    FeedError,
    FeedParseError,
    FeedTransportError,
    LiveTrackConfigError,
    LiveTrackError,
)
from pylivetrack.ingestion.enrich import Rendered, Skipped, SkipReason, TripLookup, enrich
from pylivetrack.labels import LabelStateMachine
from pylivetrack.models import EnrichedAgentState, LatLng, RawAgentState, TripInfo
from pylivetrack.poller import PollResult, SnapshotPoller
from pylivetrack.registry import AgentRegistry, TrackedAgent
from pylivetrack.surface import RecordingSurface, RenderSurface
from pylivetrack.style import IconKind, IconSpec

__all__ = [
    "__version__",
    "AgentRegistry",
    "Animation",
    "EngineNotStartedError",
    "EnrichedAgentState",
    "ExpiryPolicy",
    "FeedError",
    "FeedParseError",
    "FeedTransportError",
    "IconKind",
    "IconSpec",
    "LabelStateMachine",
    "LatLng",
    "LiveTrackConfigError",
    "LiveTrackError",
    "MotionAnimator",
    "PollResult",
    "RawAgentState",
    "RecordingSurface",
    "Rendered",
    "RenderSurface",
    "SkipReason",
    "Skipped",
    "SnapshotPoller",
    "SnapshotReport",
    "TrackedAgent",
    "TrackerConfig",
    "TrackingEngine",
    "TripInfo",
    "TripLookup",
    "enrich",
]
