from .comparator import Comparator as Comparator
from .config import RunnerConfig as RunnerConfig
from .dispatcher import Dispatcher as Dispatcher
from .errors import (
    ConfigError as ConfigError,
    FatalError as FatalError,
    SourceError as SourceError,
    TransportError as TransportError,
    VersusError as VersusError,
)
from .models import (
    Classification as Classification,
    EndpointTarget as EndpointTarget,
    EquivalenceClass as EquivalenceClass,
    Failure as Failure,
    FailureKind as FailureKind,
    Outcome as Outcome,
    Request as Request,
    RunSummary as RunSummary,
    Verdict as Verdict,
)
from .policies import exact_match as exact_match, json_match as json_match
from .runner import VersusRunner as VersusRunner

__version__ = "0.1.0"
