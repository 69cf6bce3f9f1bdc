"""The service locator: immutable registration and memoised resolution.

A :class:`ServiceLocator` maps identifying types (usually interfaces or abstract
base classes) to bindings. Registering a binding never changes a locator; it
returns a new one. Services are built on demand by :mod:`summon.injector`, which
asks the locator for every service a constructor or factory requires, so whole
object graphs are built recursively. Every service is built at most once per
locator.

Example:
    >>> locator = (
    ...     ServiceLocator()
    ...     .register(Database, PostgresDatabase)
    ...     .register(UserRepository)
    ...     .register(Clock, lambda: SystemClock(tz="UTC"))
    ... )
    >>> repository = locator.get(UserRepository)
    >>> repository.db is locator.get(Database)
    True
"""

import inspect
import logging
import threading
from contextlib import nullcontext
from types import MappingProxyType
from typing import Any, Callable, Iterable, Iterator, Mapping, Optional, TypeVar

from summon.domain import Binding, BindingKind
from summon.errors import (
    AlreadyRegisteredError,
    CircularDependencyError,
    InvalidBindingError,
    NotRegisteredError,
    type_name,
)
from summon.injector import inject_closure, inject_constructor, is_protocol

__all__ = ["ServiceLocator"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ServiceLocator:
    """Registry of bindings that builds and caches the services they describe.

    The binding table is frozen when the locator is created. The cache of built
    services is not: it fills up as services are requested. A locator derived by
    one of the ``register`` methods starts with a copy of its parent's cache, so
    services built before the derivation are shared and services built after it
    are not.

    Args:
        bindings: Bindings to start with. Duplicated identifying types raise
            :class:`AlreadyRegisteredError`.
        thread_safe: If true (the default), building and caching services is
            guarded by a lock, so a locator may be shared between threads and
            still builds every service once. Derived locators inherit this setting.
    """

    def __init__(
        self, bindings: Optional[Iterable[Binding]] = None, *, thread_safe: bool = True
    ):
        table: dict[type, Binding] = {}
        for binding in bindings or ():
            if binding.identifying_type in table:
                raise AlreadyRegisteredError(binding.identifying_type)
            table[binding.identifying_type] = binding

        self._bindings = MappingProxyType(table)
        self._thread_safe = thread_safe
        self._lock = threading.RLock() if thread_safe else nullcontext()
        self._built: dict[type, Any] = {}
        self._in_progress = threading.local()

    @property
    def bindings(self) -> Mapping[type, Binding]:
        """Read-only view of the registered bindings, keyed by identifying type."""
        return self._bindings

    def register(
        self, identifying_type: type, implementation: Optional[Any] = None
    ) -> "ServiceLocator":
        """Bind an identifying type and return a new locator holding the binding.

        Args:
            identifying_type: The class services are requested by.
            implementation: ``None`` to construct ``identifying_type`` itself, a
                class to construct instead, or a factory callable whose return
                value is the service. Constructors and factories have their
                parameters injected.

        Returns:
            A new locator; this one is left unchanged.

        Raises:
            AlreadyRegisteredError: If ``identifying_type`` is already bound.
            InvalidBindingError: If ``identifying_type`` is not a class, or
                ``implementation`` is neither ``None``, a class nor a callable.
        """
        if implementation is None or implementation is identifying_type:
            return self._derive(identifying_type, BindingKind.SELF, identifying_type)
        if inspect.isclass(implementation):
            return self._derive(identifying_type, BindingKind.CLASS, implementation)
        if callable(implementation):
            return self._derive(identifying_type, BindingKind.FACTORY, implementation)
        raise InvalidBindingError(
            identifying_type, implementation, "expected a class or a callable"
        )

    def register_class(self, identifying_type: type, implementing_class: type) -> "ServiceLocator":
        """Bind an identifying type to a class built by constructor injection.

        Raises:
            AlreadyRegisteredError: If ``identifying_type`` is already bound.
            InvalidBindingError: If ``implementing_class`` is not a class.
        """
        if not inspect.isclass(implementing_class):
            raise InvalidBindingError(
                identifying_type, implementing_class, "expected a class"
            )
        kind = BindingKind.SELF if implementing_class is identifying_type else BindingKind.CLASS
        return self._derive(identifying_type, kind, implementing_class)

    def register_factory(
        self, identifying_type: type, factory: Callable[..., Any]
    ) -> "ServiceLocator":
        """Bind an identifying type to a factory whose return value is the service.

        The factory's parameters are injected. A class passed here is treated
        like any other callable.

        Raises:
            AlreadyRegisteredError: If ``identifying_type`` is already bound.
            InvalidBindingError: If ``factory`` is not callable.
        """
        if not callable(factory):
            raise InvalidBindingError(identifying_type, factory, "expected a callable")
        return self._derive(identifying_type, BindingKind.FACTORY, factory)

    def has(self, identifying_type: type) -> bool:
        """Whether a binding exists. It does not mean the service can be built."""
        try:
            return identifying_type in self._bindings
        except TypeError:
            # unhashable keys can never have been registered
            return False

    def get(self, identifying_type: type[T]) -> T:
        """Return the service registered for an identifying type, building it if needed.

        Raises:
            NotRegisteredError: If nothing is bound to ``identifying_type``.
            CircularDependencyError: If building the service requires the service itself.
        """
        if not self.has(identifying_type):
            raise NotRegisteredError(identifying_type)

        with self._lock:
            if identifying_type in self._built:
                logger.debug("Reusing built service %s", type_name(identifying_type))
                return self._built[identifying_type]

            service = self._build(identifying_type)
            self._built[identifying_type] = service
            return service

    def __contains__(self, identifying_type: type) -> bool:
        return self.has(identifying_type)

    def __getitem__(self, identifying_type: type[T]) -> T:
        return self.get(identifying_type)

    def __iter__(self) -> Iterator[type]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    def __repr__(self) -> str:
        return f"<ServiceLocator bindings={len(self._bindings)} built={len(self._built)}>"

    def _build(self, identifying_type: type) -> Any:
        stack = self._resolution_stack()
        if identifying_type in stack:
            raise CircularDependencyError(identifying_type, stack + [identifying_type])

        stack.append(identifying_type)
        try:
            binding = self._bindings.get(identifying_type)
            if binding is None:
                raise NotRegisteredError(identifying_type)

            logger.debug(
                "Building service %s from %s binding",
                type_name(identifying_type),
                binding.kind.value,
            )
            if binding.is_factory:
                return inject_closure(self, binding.target)
            return inject_constructor(self, binding.target)
        finally:
            stack.pop()

    def _resolution_stack(self) -> list[type]:
        """The identifying types being built by the current thread, outermost first."""
        stack = getattr(self._in_progress, "stack", None)
        if stack is None:
            stack = self._in_progress.stack = []
        return stack

    def _derive(self, identifying_type: type, kind: BindingKind, target: Any) -> "ServiceLocator":
        if not inspect.isclass(identifying_type):
            raise InvalidBindingError(
                identifying_type, target, "the identifying type must be a class"
            )
        if self.has(identifying_type):
            raise AlreadyRegisteredError(identifying_type)
        if kind is not BindingKind.FACTORY and inspect.isabstract(target):
            raise InvalidBindingError(
                identifying_type, target, "an abstract class cannot be constructed"
            )
        if kind is not BindingKind.FACTORY and is_protocol(target):
            raise InvalidBindingError(
                identifying_type, target, "a protocol class cannot be constructed"
            )

        binding = Binding(identifying_type, kind, target)
        derived = ServiceLocator(
            [*self._bindings.values(), binding], thread_safe=self._thread_safe
        )
        with self._lock:
            derived._built = dict(self._built)

        logger.debug(
            "Registered %s as %s binding to %r",
            type_name(identifying_type),
            kind.value,
            target,
        )
        return derived
