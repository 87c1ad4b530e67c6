"""JavaScript → PHP structural translator package."""

from .api import translate, parse_source  # noqa: F401
from .translate_types import TranslateOptions  # noqa: F401
from .errors import (  # noqa: F401
    TranslationError,
    SourceSyntaxError,
    UnsupportedConstructError,
)
