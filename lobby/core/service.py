import re
from typing import Any, Dict, Optional

from .dependency_injector import DependencyInjector

CASE_PATTERN = re.compile(r"(?<!^)(?=[A-Z])")


service_registry: Dict[str, type] = {}


class Service():
    """
    Base class for every lobby service.

    Services are singletons owned by a `LobbyInstance`. Subclasses register
    themselves under the snake cased class name, which is also the name other
    services use to request them as a constructor argument.
    """
    def __init_subclass__(cls, name: Optional[str] = None, **kwargs: Any):
        super().__init_subclass__(**kwargs)
        service_registry[name or snake_case(cls.__name__)] = cls

    async def initialize(self) -> None:
        """
        Called once while the lobby instance is starting.
        """
        pass  # pragma: no cover

    async def shutdown(self) -> None:
        """
        Called once when the lobby instance is stopped.
        """
        pass  # pragma: no cover


def create_services(injectables: Dict[str, object] = {}) -> Dict[str, Service]:
    """
    Resolve dependencies between all registered services and build them.
    """
    injector = DependencyInjector()
    injector.add_injectables(**injectables)

    return injector.build_classes(service_registry)


def snake_case(string: str) -> str:
    """
    >>> snake_case("SessionRegistry")
    'session_registry'
    """
    return CASE_PATTERN.sub("_", string).lower()
