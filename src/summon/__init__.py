"""Summon dependency injection container.

Summon is a small dependency injection container. Services are registered under an
identifying type (an interface, abstract base class or concrete class) together
with a recipe for building them, and are built on demand, at most once, with
every service they require injected into their constructor or factory. The
dependencies of a constructor, method or function are read from its type hints.

Key Features:
    - Immutable locators: registering a binding returns a new locator
    - Constructor injection for class bindings, callable injection for factories
    - Injection into methods, static methods, ``__call__``, functions and closures
    - Cycle detection naming the whole resolution chain
    - Thread-safe, at-most-once construction of every service

Basic Usage:
    >>> from summon import ServiceLocator
    >>>
    >>> locator = ServiceLocator().register(Database, PostgresDatabase).register(UserService)
    >>> service = locator.get(UserService)

The package consists of several modules:
    - locator: Registration and memoised resolution of services
    - injector: Injection of services into constructors, methods and functions
    - inspection: Discovery of the services a callable requires
    - domain: Core domain models (Binding, ParameterRequirement)
    - errors: Framework-specific exceptions
"""

from summon.domain import Binding, BindingKind, ParameterRequirement
from summon.errors import (
    AlreadyRegisteredError,
    CircularDependencyError,
    DependencyError,
    InjectionError,
    InvalidBindingError,
    MissingTypeAnnotationError,
    NotAClassOrInterfaceError,
    NotRegisteredError,
    OptionalParameterNotAllowedError,
    ParameterError,
    RegistrationError,
    ResolutionError,
    TargetNotFoundError,
)
from summon.injector import (
    InjectionTarget,
    ServiceProvider,
    inject,
    inject_closure,
    inject_constructor,
    inject_function,
    inject_invoke_method,
    inject_method,
    inject_static_method,
)
from summon.locator import ServiceLocator

__all__ = [
    "ServiceLocator",
    "ServiceProvider",
    "Binding",
    "BindingKind",
    "ParameterRequirement",
    "InjectionTarget",
    "inject",
    "inject_constructor",
    "inject_method",
    "inject_static_method",
    "inject_invoke_method",
    "inject_function",
    "inject_closure",
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
