"""Discovery of the services an injection target requires.

The inspector reads a target's signature and turns each formal parameter into a
:class:`~summon.domain.ParameterRequirement`. Every parameter must be annotated
with a class or interface and must be mandatory: the container has no notion of
optional dependencies or of scalar values, so anything else is rejected before a
single service is resolved.
"""

import functools
import inspect
import logging
import sys
from typing import Annotated, Any, Callable, get_args, get_origin

from summon.domain import ParameterRequirement
from summon.errors import (
    InjectionError,
    MissingTypeAnnotationError,
    NotAClassOrInterfaceError,
    OptionalParameterNotAllowedError,
    type_name,
)

__all__ = ["required_types", "is_class_or_interface"]

logger = logging.getLogger(__name__)

_VARIADIC = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


def required_types(target: Callable, description: str) -> list[ParameterRequirement]:
    """Extract the services required by an injection target, in declaration order.

    Annotations are read from the same callable the signature comes from, so a
    class taking its parameters in ``__new__`` or a partial are handled like
    any function, string annotations included.

    Args:
        target: The callable whose signature lists the parameters to inject. For
            classes this is the class itself, so ``self`` is not included.
        description: Human readable name of the target, used in error messages.

    Returns:
        One requirement per formal parameter. An empty list is valid.

    Raises:
        MissingTypeAnnotationError: A parameter has no annotation.
        NotAClassOrInterfaceError: An annotation is not a resolvable class or interface.
        OptionalParameterNotAllowedError: A parameter has a default value or is variadic.

    Example:
        >>> def handler(db: Database, cache: Annotated[Cache, "redis"]): ...
        >>> required_types(handler, "function handler()")
        [ParameterRequirement("db", Database), ParameterRequirement("cache", Cache)]
    """
    try:
        try:
            sig = inspect.signature(target, eval_str=True)
        except (NameError, AttributeError, SyntaxError):
            # An unresolvable forward reference; annotations are evaluated one by
            # one so that the offending parameter can be named.
            sig = inspect.signature(target)
    except (TypeError, ValueError) as e:
        raise InjectionError(
            f"Error while injecting services into {description}: "
            f"its signature cannot be inspected ({e})",
            description,
        ) from e

    namespace = _module_namespace(target)
    requirements = [
        _make_requirement(parameter, namespace, description)
        for parameter in sig.parameters.values()
    ]
    logger.debug(
        "%s requires %s",
        description,
        [type_name(r.identifying_type) for r in requirements],
    )
    return requirements


def is_class_or_interface(annotation: Any) -> bool:
    """Whether an annotation names a class-like contract a service can satisfy.

    Parameterised generics, unions, ``Any`` and the classes of the ``builtins``
    module (``int``, ``str``, ``dict``, ``object``...) are not.
    """
    if get_origin(annotation) is not None or annotation is Any:
        return False
    return inspect.isclass(annotation) and annotation.__module__ != "builtins"


def _module_namespace(target: Any) -> dict[str, Any]:
    while isinstance(target, functools.partial):
        target = target.func
    target = inspect.unwrap(target)
    namespace = getattr(target, "__globals__", None)
    if namespace is not None:
        return namespace
    module_name = getattr(target, "__module__", None) or type(target).__module__
    module = sys.modules.get(module_name)
    return vars(module) if module is not None else {}


def _make_requirement(
    parameter: inspect.Parameter, namespace: dict[str, Any], description: str
) -> ParameterRequirement:
    name = parameter.name
    annotation = parameter.annotation

    if annotation is inspect.Parameter.empty:
        raise MissingTypeAnnotationError(description, name)

    if isinstance(annotation, str):
        annotation = _evaluate(annotation, namespace, description, name)

    if get_origin(annotation) is Annotated:
        annotation = get_args(annotation)[0]

    if not is_class_or_interface(annotation):
        raise NotAClassOrInterfaceError(description, name, annotation)

    if parameter.default is not inspect.Parameter.empty or parameter.kind in _VARIADIC:
        raise OptionalParameterNotAllowedError(description, name)

    return ParameterRequirement(name, annotation, parameter.kind)


def _evaluate(
    annotation: str, namespace: dict[str, Any], description: str, name: str
) -> Any:
    try:
        return eval(annotation, namespace)
    except (NameError, AttributeError, SyntaxError, TypeError) as e:
        raise NotAClassOrInterfaceError(description, name, annotation) from e
