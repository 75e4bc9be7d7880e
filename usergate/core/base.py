"""Usergate base class. Provides unified configuration and logging to every stateful component."""

from abc import ABCMeta
from typing import Optional

from usergate.core.config import Config, get_usergate_config
from usergate.core.logging import get_logger


class UsergateMeta(type):
    """Metaclass giving classes derived from Usergate a class-level logger and config.

    Example::

        from usergate.core import Usergate

        class MyClass(Usergate):
            @classmethod
            def class_method(cls):
                cls.logger.info(f"Using logger: {cls.logger.name}")  # usergate.my_module.MyClass
    """

    def __init__(cls, name, bases, attr_dict):
        super().__init__(name, bases, attr_dict)
        cls._logger = None
        cls._config = None

    @property
    def logger(cls):
        if cls._logger is None:
            cls._logger = get_logger(cls.unique_name)
        return cls._logger

    @logger.setter
    def logger(cls, new_logger):
        cls._logger = new_logger

    @property
    def unique_name(cls) -> str:
        return cls.__module__ + "." + cls.__name__

    @property
    def config(cls) -> Config:
        if cls._config is None:
            cls._config = get_usergate_config()
        return cls._config

    @config.setter
    def config(cls, new_config):
        cls._config = new_config


class Usergate(metaclass=UsergateMeta):
    """Base class for usergate components.

    Instances get ``self.logger`` (named after the concrete class) and ``self.config``. Passing ``config`` lets a
    component run against an explicitly constructed configuration instead of the cached process-wide one.
    Instances can be used as context managers; exceptions raised inside the block are logged and re-raised.
    """

    def __init__(self, *, config: Optional[Config] = None, **kwargs):
        super().__init__()
        self.config = config if config is not None else get_usergate_config()
        self.logger = get_logger(self.unique_name, **kwargs)

    @property
    def unique_name(self) -> str:
        return self.__module__ + "." + type(self).__name__

    @property
    def name(self) -> str:
        return type(self).__name__

    def __enter__(self):
        self.logger.debug(f"Initializing {self.name} as a context manager.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.logger.debug(f"Exiting context manager for {self.name}.")
        if exc_type is not None:
            self.logger.exception("Exception occurred", exc_info=(exc_type, exc_val, exc_tb))
        return False


class UsergateABCMeta(UsergateMeta, ABCMeta):
    """Metaclass combining UsergateMeta with ABCMeta so abstract Usergate classes enforce their interface."""

    pass


class UsergateABC(Usergate, metaclass=UsergateABCMeta):
    """Abstract variant of :class:`Usergate`."""

    pass
