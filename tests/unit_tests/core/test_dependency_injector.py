import copy

import pytest

from lobby.core import DependencyInjector


@pytest.fixture
def injector():
    return DependencyInjector()


class Registry:
    def __init__(self) -> None:
        pass


class Ledger:
    def __init__(self) -> None:
        pass


class Lobbies:
    def __init__(self, registry: Registry, ledger: Ledger, renderer: object) -> None:
        self.registry = registry
        self.ledger = ledger
        self.renderer = renderer


def test_build_classes(injector):
    instances = injector.build_classes({"registry": Registry, "ledger": Ledger})

    assert instances == {
        "registry": instances["registry"],
        "ledger": instances["ledger"]
    }
    assert isinstance(instances["registry"], Registry)
    assert isinstance(instances["ledger"], Ledger)


def test_build_classes_empty(injector):
    assert injector.build_classes({}) == {}


def test_build_classes_doesnt_modify_input(injector):
    classes = {"registry": Registry, "ledger": Ledger}
    original = copy.deepcopy(classes)

    injector.build_classes(classes, other=Registry)

    assert classes == original


def test_build_classes_kwargs(injector):
    instances = injector.build_classes(registry=Registry, ledger=Ledger)

    assert set(instances) == {"registry", "ledger"}
    assert isinstance(instances["ledger"], Ledger)


def test_build_twice_reuses_instances(injector):
    instances = injector.build_classes({"registry": Registry})
    instances2 = injector.build_classes({"registry": Registry})

    assert instances["registry"] is instances2["registry"]


def test_resolve_injectables(injector):
    renderer = object()
    injector.add_injectables({"renderer": renderer})

    instances = injector.build_classes({
        "registry": Registry,
        "ledger": Ledger,
        "lobbies": Lobbies,
    })

    # Injectables are not part of the result
    assert set(instances) == {"registry", "ledger", "lobbies"}
    assert instances["lobbies"].renderer is renderer
    assert instances["lobbies"].registry is instances["registry"]
    assert instances["lobbies"].ledger is instances["ledger"]


def test_resolve_injectables_kwargs(injector):
    renderer = object()
    injector.add_injectables(renderer=renderer)

    instances = injector.build_classes(
        registry=Registry, ledger=Ledger, lobbies=Lobbies
    )

    assert instances["lobbies"].renderer is renderer


def test_save_instances(injector):
    injector.add_injectables(renderer=object())
    first = injector.build_classes({"registry": Registry, "ledger": Ledger})
    second = injector.build_classes({"lobbies": Lobbies})

    assert second["lobbies"].registry is first["registry"]
    assert second["lobbies"].ledger is first["ledger"]


def test_find_missing(injector):
    with pytest.raises(RuntimeError):
        injector.build_classes({"lobbies": Lobbies})


def test_find_cycle(injector):
    class A:
        def __init__(self, b: "B") -> None:
            pass

    class B:
        def __init__(self, a: A) -> None:
            self.a = a

    with pytest.raises(RuntimeError):
        injector.build_classes({"a": A, "b": B})
