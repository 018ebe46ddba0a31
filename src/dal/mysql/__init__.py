"""MySQL-backed DAL components."""

from .driver import MysqlDriver
from .param_translation import PlaceholderTranslationError, translate_qmark_params_to_mysql

__all__ = [
    "MysqlDriver",
    "PlaceholderTranslationError",
    "translate_qmark_params_to_mysql",
]
