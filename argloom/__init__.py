__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'argloom'
__author__ = 'Eiko Reishin (影皇嶺臣)'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

from .constructs import *
from .faults import *
from .messages import *
from .modifiers import *
from .parsers import *
from .primitives import *
from .suggestions import *
from .usage import *
from .valueparsers import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 0, 0, "final", 0, "")

__all__ = (
    "__path__",
    "__title__",
    "__author__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of the parser contract and drivers
__all__ += parsers.__all__  # type: ignore[attr-defined]
# Load the exposed API of the value parsers
__all__ += valueparsers.__all__  # type: ignore[attr-defined]
# Load the exposed API of the primitives
__all__ += primitives.__all__  # type: ignore[attr-defined]
# Load the exposed API of the modifiers
__all__ += modifiers.__all__  # type: ignore[attr-defined]
# Load the exposed API of the constructs
__all__ += constructs.__all__  # type: ignore[attr-defined]
# Load the exposed API of the messages
__all__ += messages.__all__  # type: ignore[attr-defined]
# Load the exposed API of the usage trees
__all__ += usage.__all__  # type: ignore[attr-defined]
# Load the exposed API of the suggestions
__all__ += suggestions.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
