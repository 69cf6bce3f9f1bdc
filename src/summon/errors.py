"""Exceptions raised while registering, resolving and injecting services."""

from typing import Any, Optional

__all__ = [
    "DependencyError",
    "RegistrationError",
    "AlreadyRegisteredError",
    "InvalidBindingError",
    "ResolutionError",
    "NotRegisteredError",
    "CircularDependencyError",
    "InjectionError",
    "TargetNotFoundError",
    "ParameterError",
    "MissingTypeAnnotationError",
    "NotAClassOrInterfaceError",
    "OptionalParameterNotAllowedError",
]


def type_name(obj: Any) -> str:
    """Readable name of a class (or anything else used as a key) for messages."""
    qualname = getattr(obj, "__qualname__", None)
    if qualname is None:
        return repr(obj)
    module = getattr(obj, "__module__", None)
    if module in (None, "builtins", "__main__"):
        return qualname
    return f"{module}.{qualname}"


class DependencyError(Exception):
    """Base class of every error raised by summon."""

    pass


class RegistrationError(DependencyError):
    """Raised when a binding cannot be added to a locator."""

    def __init__(self, message: str, identifying_type: Any):
        super().__init__(message)
        self.identifying_type = identifying_type


class AlreadyRegisteredError(RegistrationError):
    def __init__(self, identifying_type: Any):
        super().__init__(
            f"A service {type_name(identifying_type)} has already been registered",
            identifying_type,
        )


class InvalidBindingError(RegistrationError):
    def __init__(self, identifying_type: Any, implementation: Any, reason: str):
        super().__init__(
            f"Cannot bind {type_name(identifying_type)} to {implementation!r}: {reason}",
            identifying_type,
        )
        self.implementation = implementation


class ResolutionError(DependencyError):
    """Raised when a registered binding cannot be turned into a service."""

    def __init__(self, message: str, identifying_type: Any):
        super().__init__(message)
        self.identifying_type = identifying_type


class NotRegisteredError(ResolutionError, LookupError):
    def __init__(self, identifying_type: Any):
        super().__init__(
            f"There is no service {type_name(identifying_type)} registered",
            identifying_type,
        )


class CircularDependencyError(ResolutionError):
    """Raised when building a service requires that same service.

    Attributes:
        chain: The identifying types on the resolution stack, ending with the
            type that was requested a second time.
    """

    def __init__(self, identifying_type: Any, chain: list[Any]):
        path = " -> ".join(type_name(t) for t in chain)
        super().__init__(
            f"Circular reference: to build the service {type_name(identifying_type)}, "
            f"the service {type_name(identifying_type)} would already be required ({path})",
            identifying_type,
        )
        self.chain = chain


class InjectionError(DependencyError):
    """Raised when services cannot be injected into a target.

    Attributes:
        target: Description of the injection target, e.g. ``Service.__init__()``.
    """

    def __init__(self, message: str, target: str):
        super().__init__(message)
        self.target = target


class TargetNotFoundError(InjectionError, LookupError):
    pass


class ParameterError(InjectionError):
    """Raised when a parameter of an injection target cannot be injected."""

    def __init__(self, target: str, parameter_name: str, problem: str):
        super().__init__(
            f"Error while injecting services into {target}: "
            f"parameter '{parameter_name}' {problem}",
            target,
        )
        self.parameter_name = parameter_name


class MissingTypeAnnotationError(ParameterError):
    def __init__(self, target: str, parameter_name: str):
        super().__init__(target, parameter_name, "has no type annotation")


class NotAClassOrInterfaceError(ParameterError):
    def __init__(self, target: str, parameter_name: str, annotation: Optional[Any]):
        super().__init__(
            target,
            parameter_name,
            f"is annotated with {_annotation_text(annotation)}, "
            "which is not an existing class or interface",
        )
        self.annotation = annotation


class OptionalParameterNotAllowedError(ParameterError):
    def __init__(self, target: str, parameter_name: str):
        super().__init__(target, parameter_name, "must not be optional")


def _annotation_text(annotation: Any) -> str:
    if isinstance(annotation, str):
        return repr(annotation)
    if isinstance(annotation, type):
        return type_name(annotation)
    return repr(annotation)
