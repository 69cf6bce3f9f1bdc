"""Domain models used throughout the container."""

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Union


class BindingKind(Enum):
    """How a binding produces its service.

    Attributes:
        SELF: The identifying type is itself constructed by constructor injection.
        CLASS: A separate implementing class is constructed by constructor injection.
        FACTORY: A callable is invoked by callable injection and its result used as is.
    """

    SELF = "self"
    CLASS = "class"
    FACTORY = "factory"


@dataclass(frozen=True)
class Binding:
    """The recipe registered for one identifying type.

    Attributes:
        identifying_type: The key the service is registered and requested under.
        kind: Which of the three recipes this binding uses.
        target: The class to construct, or the factory to call. For self-bindings
            this is the identifying type.
    """

    identifying_type: type
    kind: BindingKind
    target: Union[type, Callable[..., Any]]

    @property
    def is_factory(self) -> bool:
        return self.kind is BindingKind.FACTORY


@dataclass(frozen=True)
class ParameterRequirement:
    """A service required by one formal parameter of an injection target.

    Attributes:
        parameter_name: The parameter name in the target's signature.
        identifying_type: The declared type, used to look the service up.
        kind: The parameter kind; keyword-only parameters are passed by name.
    """

    parameter_name: str
    identifying_type: type
    kind: Any = inspect.Parameter.POSITIONAL_OR_KEYWORD

    @property
    def keyword_only(self) -> bool:
        return self.kind is inspect.Parameter.KEYWORD_ONLY
