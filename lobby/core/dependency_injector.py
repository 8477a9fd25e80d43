import inspect
from collections import ChainMap, defaultdict
from typing import Dict, List

DependencyGraph = Dict[str, List[str]]


class DependencyInjector(object):
    """
    Builds objects whose constructor arguments are resolved by parameter name.

    A class with
    ```
    def __init__(self, player_store, session_registry):
        pass
    ```
    receives whatever was registered as `player_store` through
    `add_injectables`, and the instance built for the `session_registry` entry
    of the same `build_classes` call.

    Every name resolves to exactly one object, so two services depending on
    `session_registry` share the same registry.

    # Example
    ```
    class Ledger(object):
        pass

    class Undo(object):
        def __init__(self, ledger, renderer):
            self.ledger = ledger

    injector = DependencyInjector()
    injector.add_injectables(renderer=object())
    built = injector.build_classes({"ledger": Ledger, "undo": Undo})

    assert built["undo"].ledger is built["ledger"]
    ```
    """

    def __init__(self) -> None:
        self.injectables: Dict[str, object] = {}

    def add_injectables(
        self, injectables: Dict[str, object] = {}, **kwargs: object
    ) -> None:
        """
        Make objects available to the constructors of built classes.
        """
        self.injectables.update(injectables)
        self.injectables.update(kwargs)

    def build_classes(
        self, classes: Dict[str, type] = {}, **kwargs: type
    ) -> Dict[str, object]:
        """
        Instantiate every class once its dependencies are available.
        """
        # Merge into kwargs so the caller's dict is left alone
        kwargs.update(classes)
        classes = kwargs

        graph = self._make_dependency_graph(classes)
        params = dict(graph)

        resolved = self._build_in_order(graph, classes, params)
        instances = {name: resolved[name] for name in classes}
        self.add_injectables(**instances)
        return instances

    def _make_dependency_graph(self, classes: Dict[str, type]) -> DependencyGraph:
        graph: DependencyGraph = defaultdict(list)
        for name in self.injectables:
            graph[name] = []

        for name, klass in classes.items():
            signature = inspect.signature(klass.__init__)
            # Drop `self`
            graph[name] = [
                param.name
                for param in list(signature.parameters.values())[1:]
            ]

        return graph

    def _build_in_order(
        self,
        graph: DependencyGraph,
        classes: Dict[str, type],
        params: Dict[str, List[str]]
    ) -> Dict[str, object]:
        """
        Repeatedly build every node without unresolved dependencies. Raises
        RuntimeError for missing or cyclic dependencies.
        """
        instances: Dict[str, object] = {}
        resolved = ChainMap(instances, self.injectables)

        while graph:
            ready = [name for name, deps in graph.items() if not deps]
            if not ready:
                missing = {
                    dep for deps in graph.values()
                    for dep in deps if dep not in graph
                }
                if missing:
                    raise RuntimeError(
                        f"Some dependencies could not be resolved: {missing}"
                    )
                raise RuntimeError(
                    f"Could not resolve cyclic dependency: {tuple(graph)}"
                )

            for name in ready:
                if name in resolved:
                    instances[name] = resolved[name]
                else:
                    instances[name] = classes[name](**{
                        param: resolved[param] for param in params[name]
                    })
                del graph[name]

            for name, deps in graph.items():
                graph[name] = [dep for dep in deps if dep not in ready]

        return instances
