import random
import unittest

import servicehub
from servicehub import Container, Token, get, of, reset, service


class TestServiceDecorator(unittest.TestCase):
    def setUp(self):
        reset()

    def test_registers_class_and_instance_is_retrievable(self):
        @service()
        class TestService: ...

        @service("super.service")
        class NamedService: ...

        assert isinstance(get(TestService), TestService)
        assert not isinstance(get(TestService), NamedService)

    def test_registers_class_under_given_name(self):
        @service()
        class TestService: ...

        @service("super.service")
        class NamedService: ...

        assert isinstance(get("super.service"), NamedService)
        assert not isinstance(get("super.service"), TestService)

    def test_decorator_returns_class_unchanged(self):
        class Plain: ...

        assert service()(Plain) is Plain

    def test_parameter_dependencies_are_initialized(self):
        @service()
        class TestService: ...

        @service()
        class SecondTestService: ...

        @service(params=[TestService, SecondTestService])
        class TestServiceWithParameters:
            def __init__(self, test_class: TestService, second_test: SecondTestService):
                self.test_class = test_class
                self.second_test = second_test

        obj = get(TestServiceWithParameters)
        assert isinstance(obj, TestServiceWithParameters)
        assert isinstance(obj.test_class, TestService)
        assert isinstance(obj.second_test, SecondTestService)

    def test_factory_function(self):
        class Engine:
            def __init__(self, serial_number: str):
                self.serial_number = serial_number

        def create_car():
            return Car("BMW", Engine("A-123"))

        @service(factory=create_car)
        class Car:
            def __init__(self, name: str, engine: Engine):
                self.name = name
                self.engine = engine

        assert get(Car).name == "BMW"
        assert get(Car).engine.serial_number == "A-123"

    def test_factory_class(self):
        @service()
        class Engine:
            serial_number = "A-123"

        @service(params=[Engine])
        class CarFactory:
            def __init__(self, engine: Engine):
                self.engine = engine

            def create_car(self):
                return Car("BMW", self.engine)

        @service(factory=(CarFactory, "create_car"))
        class Car:
            def __init__(self, name: str, engine: Engine):
                self.name = name
                self.engine = engine

        assert get(Car).name == "BMW"
        assert get(Car).engine.serial_number == "A-123"

    def test_factory_method_with_arguments(self):
        @service()
        class Engine:
            type = "V8"

        @service()
        class CarFactory:
            def create_car(self, engine: Engine):
                engine.type = "V6"
                return Car(engine)

        @service(factory=(CarFactory, "create_car"), params=[Engine])
        class Car:
            def __init__(self, engine: Engine):
                self.engine = engine

        assert get(Car).engine.type == "V6"

    def test_transient_services(self):
        @service()
        class Car:
            def __init__(self):
                self.serial = random.random()

        @service(transient=True)
        class Engine:
            def __init__(self):
                self.serial = random.random()

        assert get(Car).serial == get(Car).serial
        assert get(Engine) is not get(Engine)

    def test_transient_services_in_scoped_containers(self):
        @service()
        class Car: ...

        @service(transient=True)
        class Engine: ...

        scope = of("container")
        assert scope.get(Car) is scope.get(Car)
        assert scope.get(Engine) is not scope.get(Engine)

    def test_global_services(self):
        @service()
        class Engine:
            def __init__(self):
                self.name = "sporty"

        @service(global_=True)
        class Car:
            def __init__(self):
                self.name = "SportCar"

        scoped = of("enigma")

        assert get(Car).name == "SportCar"
        assert scoped.get(Car).name == "SportCar"
        assert get(Engine).name == "sporty"
        assert scoped.get(Engine).name == "sporty"

        get(Car).name = "MyCar"
        get(Engine).name = "regular"

        assert get(Car).name == "MyCar"
        assert scoped.get(Car).name == "MyCar"
        assert get(Engine).name == "regular"
        assert scoped.get(Engine).name == "sporty"

    def test_token_identifier(self):
        greeter: Token[str] = Token("greeter")

        @service(greeter)
        class Greeter:
            def hello(self):
                return "hello"

        assert get(greeter).hello() == "hello"

    def test_register_into_explicit_container(self):
        local = Container()

        @service(container=local)
        class Local: ...

        assert local.has(Local)
        assert not servicehub.container.has(Local)


class TestDefaultContainerShortcuts(unittest.TestCase):
    def setUp(self):
        reset()

    def test_register_shortcut_targets_default_container(self):
        class A: ...

        servicehub.register(servicehub.Registration("a", impl=A))
        assert servicehub.container.has("a")
        assert isinstance(get("a"), A)

    def test_reset_with_name_only_clears_that_scope(self):
        servicehub.container.set("a", 1)
        of("request").set("b", 2)

        reset("request")

        assert not of("request").has("b")
        assert servicehub.container.has("a")

    def test_reset_clears_default_container(self):
        servicehub.container.set("a", 1)

        reset()

        assert not servicehub.container.has("a")
