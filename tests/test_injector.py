import functools
from typing import Annotated, Any, Optional, Protocol

import pytest

from postponed_stubs import NewOnly, WithInit, make_pair
from stubs import IServiceA, IServiceB, ServiceA, ServiceB, injection_target
from summon.errors import (
    MissingTypeAnnotationError,
    NotAClassOrInterfaceError,
    OptionalParameterNotAllowedError,
    TargetNotFoundError,
)
from summon.injector import (
    InjectionTarget,
    inject,
    inject_closure,
    inject_constructor,
    inject_function,
    inject_invoke_method,
    inject_method,
    inject_static_method,
)


class FakeProvider:
    def __init__(self, services: dict[type, Any]):
        self.services = services
        self.requested = []

    def get(self, identifying_type: type) -> Any:
        self.requested.append(identifying_type)
        return self.services[identifying_type]

    def has(self, identifying_type: type) -> bool:
        return identifying_type in self.services


@pytest.fixture
def service_a() -> ServiceA:
    return ServiceA()


@pytest.fixture
def provider(service_a) -> FakeProvider:
    return FakeProvider({IServiceA: service_a, IServiceB: ServiceB(service_a)})


class WithMethods:
    passed_to_static = None

    def __init__(self):
        self.passed = None

    def test_method(self, service: IServiceA):
        self.passed = [service]
        return "foo"

    @staticmethod
    def static_method(service: IServiceA):
        WithMethods.passed_to_static = [service]
        return "foo"

    @classmethod
    def class_method(cls, service: IServiceB):
        return cls, service


class Invokable:
    def __init__(self):
        self.passed = None

    def __call__(self, service: IServiceA):
        self.passed = [service]
        return "foo"


def test_constructor_injection_returns_the_built_object(provider, service_a):
    built = inject_constructor(provider, ServiceB)

    assert isinstance(built, ServiceB)
    assert built.parameters_passed_to_the_constructor == [service_a]
    assert built.parameters_passed_to_the_constructor[0] is service_a


def test_class_without_constructor_is_built_without_services(provider):
    assert isinstance(inject_constructor(provider, ServiceA), ServiceA)
    assert provider.requested == []


def test_constructor_injection_into_something_that_is_not_a_class(provider):
    with pytest.raises(TargetNotFoundError, match="Cannot find class"):
        inject_constructor(provider, "NotExistingClass")


def test_constructor_injection_into_an_abstract_class(provider):
    with pytest.raises(TargetNotFoundError, match="IServiceA is abstract"):
        inject_constructor(provider, IServiceA)


def test_method_injection(provider, service_a):
    obj = WithMethods()

    assert inject_method(provider, obj, "test_method") == "foo"
    assert obj.passed == [service_a]


def test_method_injection_into_a_missing_method(provider):
    with pytest.raises(TargetNotFoundError, match="doesn't have a method not_existing"):
        inject_method(provider, WithMethods(), "not_existing")


def test_static_method_injection(provider, service_a):
    assert inject_static_method(provider, WithMethods, "static_method") == "foo"
    assert WithMethods.passed_to_static == [service_a]


def test_class_method_injection(provider):
    cls, service = inject_static_method(provider, WithMethods, "class_method")

    assert cls is WithMethods
    assert isinstance(service, ServiceB)


def test_static_method_injection_into_a_missing_method(provider):
    with pytest.raises(TargetNotFoundError, match="doesn't have a static method"):
        inject_static_method(provider, ServiceA, "not_existing")


def test_invoke_method_injection(provider, service_a):
    obj = Invokable()

    assert inject_invoke_method(provider, obj) == "foo"
    assert obj.passed == [service_a]


def test_invoke_method_injection_into_an_object_without_call(provider):
    with pytest.raises(TargetNotFoundError, match=r"doesn't have a __call__\(\) method"):
        inject_invoke_method(provider, ServiceA())


def test_closure_injection(provider, service_a):
    passed = []

    def closure(service: IServiceA):
        passed.append(service)
        return "foo"

    assert inject_closure(provider, closure) == "foo"
    assert passed == [service_a]


def test_closure_injection_into_a_partial(provider, service_a):
    def add_prefix(prefix: str, service: IServiceA):
        return prefix + service.name()

    assert inject_closure(provider, functools.partial(add_prefix, "service ")) == "service A"


def test_closure_injection_into_something_not_callable(provider):
    with pytest.raises(TargetNotFoundError, match="is not callable"):
        inject_closure(provider, 42)


def test_function_injection(provider, service_a):
    result = inject_function(provider, injection_target)

    assert len(result) == 3
    assert result[0] is service_a
    assert result[1] is provider.services[IServiceB]
    assert result[2] == "something added by the function"


@pytest.mark.parametrize("path", ["stubs:injection_target", "stubs.injection_target"])
def test_function_injection_by_import_path(provider, service_a, path):
    assert inject_function(provider, path)[0] is service_a


@pytest.mark.parametrize(
    "path", ["stubs:not_existing", "not_existing_module:function", "injection_target"]
)
def test_function_injection_into_a_missing_function(provider, path):
    with pytest.raises(TargetNotFoundError, match="Cannot find function"):
        inject_function(provider, path)


def test_services_are_resolved_in_declaration_order(provider):
    def target(b: IServiceB, a: IServiceA):
        return b, a

    inject_closure(provider, target)
    assert provider.requested == [IServiceB, IServiceA]


def test_keyword_only_parameters_are_passed_by_name(provider, service_a):
    def target(b: IServiceB, *, a: IServiceA):
        return a

    assert inject_closure(provider, target) is service_a


def test_annotated_parameters_are_resolved_by_their_base_type(provider, service_a):
    def target(a: Annotated[IServiceA, "primary"]):
        return a

    assert inject_closure(provider, target) is service_a


def test_string_annotations_are_resolved(provider, service_a):
    def target(a: "IServiceA"):
        return a

    assert inject_closure(provider, target) is service_a


def test_parameter_without_annotation_is_rejected(provider):
    with pytest.raises(MissingTypeAnnotationError, match="parameter 'foo' has no type annotation"):
        inject_closure(provider, lambda foo: None)


def test_parameter_annotated_with_missing_class_is_rejected(provider):
    def target(a: IServiceA, foo: "Foo"):  # noqa: F821
        pass

    with pytest.raises(NotAClassOrInterfaceError, match="parameter 'foo'") as e:
        inject_closure(provider, target)
    assert e.value.annotation == "Foo"
    assert provider.requested == []


@pytest.mark.parametrize(
    "annotation", [str, int, dict, object, Any, Optional[IServiceA], list[IServiceA]]
)
def test_parameter_annotated_with_non_class_is_rejected(provider, annotation):
    def target(foo):
        pass

    target.__annotations__ = {"foo": annotation}

    with pytest.raises(NotAClassOrInterfaceError, match="not an existing class or interface"):
        inject_closure(provider, target)


def test_optional_parameter_is_rejected(provider):
    def target(service_a: IServiceA = ServiceA()):
        pass

    with pytest.raises(OptionalParameterNotAllowedError, match="must not be optional"):
        inject_closure(provider, target)


def test_variadic_parameters_are_rejected(provider):
    def target(*services: IServiceA):
        pass

    with pytest.raises(OptionalParameterNotAllowedError):
        inject_closure(provider, target)


def test_no_service_is_resolved_when_a_later_parameter_is_rejected(provider):
    def target(a: IServiceA, b: IServiceB, untyped):
        pass

    with pytest.raises(MissingTypeAnnotationError):
        inject_closure(provider, target)
    assert provider.requested == []


def test_errors_name_the_target(provider):
    with pytest.raises(MissingTypeAnnotationError) as e:
        inject_method(provider, Untyped(), "method")

    assert e.value.target.endswith("Untyped.method()")
    assert e.value.parameter_name == "thing"


def test_inject_with_explicit_target(provider, service_a):
    def target(a: IServiceA):
        return a

    assert inject(provider, InjectionTarget("custom target", target)) is service_a


class Untyped:
    def method(self, thing):
        pass


class Clock(Protocol):
    def now(self) -> float: ...


def test_constructor_injection_into_a_class_with_only_new(provider, service_a):
    built = inject_constructor(provider, NewOnly)

    assert isinstance(built, NewOnly)
    assert built.service_a is service_a


def test_constructor_injection_with_postponed_annotations(provider, service_a):
    built = inject_constructor(provider, WithInit)

    assert built.services == [service_a, provider.services[IServiceB]]


def test_function_injection_with_postponed_annotations(provider, service_a):
    assert inject_function(provider, make_pair) == (service_a, provider.services[IServiceB])
    assert inject_function(provider, "postponed_stubs:make_pair")[0] is service_a


@pytest.mark.parametrize("path", ["stubs:ServiceA", "postponed_stubs.WithInit"])
def test_function_injection_by_import_path_naming_a_class(provider, path):
    with pytest.raises(TargetNotFoundError, match="Cannot find function"):
        inject_function(provider, path)
    assert provider.requested == []


def test_static_method_injection_into_an_instance_method(provider):
    with pytest.raises(TargetNotFoundError, match="doesn't have a static method test_method"):
        inject_static_method(provider, WithMethods, "test_method")


def test_constructor_injection_into_a_protocol(provider):
    with pytest.raises(TargetNotFoundError, match="Clock is abstract"):
        inject_constructor(provider, Clock)
