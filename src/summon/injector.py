"""Invocation of constructors, methods and functions with injected services.

Every operation in this module follows the same steps: check that the target
exists, list the services its parameters require, resolve them from a
:class:`ServiceProvider` in declaration order and invoke the target with them.
The operations only differ in how the target is found and described, so each of
them builds an :class:`InjectionTarget` and hands it to :func:`inject`.
"""

import importlib
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Protocol, Union

from summon.errors import TargetNotFoundError, type_name
from summon.inspection import required_types

__all__ = [
    "ServiceProvider",
    "InjectionTarget",
    "inject",
    "inject_constructor",
    "inject_method",
    "inject_static_method",
    "inject_invoke_method",
    "inject_function",
    "inject_closure",
]

logger = logging.getLogger(__name__)


class ServiceProvider(Protocol):
    """Anything services can be requested from, usually a ServiceLocator."""

    def get(self, identifying_type: type) -> Any: ...

    def has(self, identifying_type: type) -> bool: ...


@dataclass(frozen=True)
class InjectionTarget:
    """A call site services are injected into.

    Attributes:
        description: Name of the target used in log records and error messages,
            e.g. ``Service.__init__()``.
        callable: What is inspected for parameters and then invoked.
    """

    description: str
    callable: Callable[..., Any]


def inject(provider: ServiceProvider, target: InjectionTarget) -> Any:
    """Resolve the services required by a target and invoke it with them.

    All parameters are checked before the first service is requested, so an
    unsuitable parameter never causes a service to be built.

    Returns:
        Whatever the target returns; for constructors, the new instance.
    """
    requirements = required_types(target.callable, target.description)

    args = []
    kwargs = {}
    for requirement in requirements:
        service = provider.get(requirement.identifying_type)
        if requirement.keyword_only:
            kwargs[requirement.parameter_name] = service
        else:
            args.append(service)

    logger.debug(
        "Invoking %s with %d injected services", target.description, len(requirements)
    )
    return target.callable(*args, **kwargs)


def inject_constructor(provider: ServiceProvider, cls: type) -> Any:
    """Instantiate a class, injecting services into its constructor."""
    if not inspect.isclass(cls):
        raise TargetNotFoundError(f"Cannot find class {cls!r}.", repr(cls))
    description = f"{type_name(cls)}.__init__()"
    if inspect.isabstract(cls) or is_protocol(cls):
        raise TargetNotFoundError(
            f"Class {type_name(cls)} is abstract and cannot be instantiated.",
            description,
        )
    return inject(provider, InjectionTarget(description, cls))


def inject_method(provider: ServiceProvider, obj: Any, method_name: str) -> Any:
    """Call a method of an object, injecting services into its parameters."""
    description = f"{type_name(type(obj))}.{method_name}()"
    method = getattr(obj, method_name, None)
    if not callable(method):
        raise TargetNotFoundError(
            f"An object of class {type_name(type(obj))} doesn't have a method {method_name}.",
            description,
        )
    return inject(provider, InjectionTarget(description, method))


def inject_static_method(provider: ServiceProvider, cls: type, method_name: str) -> Any:
    """Call a static or class method, injecting services into its parameters."""
    description = f"{type_name(cls)}.{method_name}()"
    declared = (
        inspect.getattr_static(cls, method_name, None) if inspect.isclass(cls) else None
    )
    if not isinstance(declared, (staticmethod, classmethod)):
        raise TargetNotFoundError(
            f"Class {cls!r} doesn't have a static method {method_name}.", description
        )
    return inject(provider, InjectionTarget(description, getattr(cls, method_name)))


def inject_invoke_method(provider: ServiceProvider, obj: Any) -> Any:
    """Call an object through its ``__call__`` method, injecting services."""
    description = f"{type_name(type(obj))}.__call__()"
    if inspect.isclass(obj) or not callable(obj):
        raise TargetNotFoundError(
            f"An object of class {type_name(type(obj))} doesn't have a __call__() method.",
            description,
        )
    return inject(provider, InjectionTarget(description, obj))


def inject_function(provider: ServiceProvider, function: Union[str, Callable]) -> Any:
    """Call a free function, injecting services into its parameters.

    Args:
        provider: Where services are requested from.
        function: The function, or its import path as ``"package.module:name"``
            or ``"package.module.name"``.
    """
    if isinstance(function, str):
        function = _import_function(function)
    elif not _is_function(function):
        raise TargetNotFoundError(
            f"{function!r} is not a function.", repr(function)
        )
    description = f"function {function.__qualname__}()"
    return inject(provider, InjectionTarget(description, function))


def inject_closure(provider: ServiceProvider, closure: Callable) -> Any:
    """Call a closure, lambda or other callable, injecting services into its parameters."""
    if not callable(closure):
        raise TargetNotFoundError(f"{closure!r} is not callable.", repr(closure))
    return inject(provider, InjectionTarget("a closure", closure))


def is_protocol(cls: type) -> bool:
    """Whether a class is a ``typing.Protocol``, which cannot be instantiated."""
    return bool(getattr(cls, "_is_protocol", False))


def _is_function(obj: Any) -> bool:
    return inspect.isfunction(obj) or inspect.isbuiltin(obj)


def _import_function(path: str) -> Callable:
    module_name, separator, attribute = path.partition(":")
    if not separator:
        module_name, _, attribute = path.rpartition(".")
    description = f"function {path}()"
    if not module_name or not attribute:
        raise TargetNotFoundError(f"Cannot find function {path}.", description)

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise TargetNotFoundError(f"Cannot find function {path}.", description) from e

    function = module
    for part in attribute.split("."):
        function = getattr(function, part, None)
    if not _is_function(function):
        raise TargetNotFoundError(f"Cannot find function {path}.", description)
    return function
