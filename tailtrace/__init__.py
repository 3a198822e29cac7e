__version__ = "0.1.0"

from .config import Config, load_config  # noqa: E402
from .converter import OTLPJsonExporter, TailStreamConverter  # noqa: E402
from .events import parse_event  # noqa: E402
from .worker import TailWorker  # noqa: E402

__all__ = [
    # Config
    "Config",
    "load_config",
    # Events
    "parse_event",
    # Converter
    "TailStreamConverter",
    "OTLPJsonExporter",
    # Host adapter
    "TailWorker",
]
