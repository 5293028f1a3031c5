__title__ = 'sextant'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.1.0"

from .arguments import *
from .commands import *
from .faults import *
from .normalization import *
from .runner import *
from .tokenizer import *
from .validation import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 1, 0, "final", 0, "")

__all__ = (
    "__title__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of the declaration model
__all__ += arguments.__all__  # type: ignore[attr-defined]
# Load the exposed API of the validator
__all__ += validation.__all__  # type: ignore[attr-defined]
# Load the exposed API of the normalization engine
__all__ += normalization.__all__  # type: ignore[attr-defined]
# Load the exposed API of the tokenizer
__all__ += tokenizer.__all__  # type: ignore[attr-defined]
# Load the exposed API of the commands
__all__ += commands.__all__  # type: ignore[attr-defined]
# Load the exposed API of the runner
__all__ += runner.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
