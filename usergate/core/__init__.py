from usergate.core.utils import as_bool, as_int, ifnone
from usergate.core.config import Config, UsergateSettings, get_usergate_config, reset_usergate_config
from usergate.core.logging import get_logger, setup_logger
from usergate.core.base import Usergate, UsergateABC, UsergateABCMeta, UsergateMeta

__all__ = [
    "as_bool",
    "as_int",
    "Config",
    "get_logger",
    "get_usergate_config",
    "ifnone",
    "reset_usergate_config",
    "setup_logger",
    "Usergate",
    "UsergateABC",
    "UsergateABCMeta",
    "UsergateMeta",
    "UsergateSettings",
]
