from typing import Any, Callable, Dict

from prefstore.store import Store

STORE_KEY_PREFIX = "store:"


class ServiceContainer:
    """A tiny, explicit DI container for registering singletons and factories.

    Register by key (string) and resolve via `get`. Factories are evaluated
    once and their result cached as singletons. Stores are registered under
    a name so application code receives them explicitly instead of looking
    them up from ambient state.
    """

    def __init__(self) -> None:
        self._singletons: Dict[str, Any] = {}
        self._factories: Dict[str, Callable[[], Any]] = {}

    def register_singleton(self, key: str, instance: Any) -> None:
        self._singletons[key] = instance

    def register_factory(self, key: str, factory: Callable[[], Any]) -> None:
        self._factories[key] = factory

    def get(self, key: str) -> Any:
        if key in self._singletons:
            return self._singletons[key]
        if key in self._factories:
            inst = self._factories[key]()
            self._singletons[key] = inst
            return inst
        raise KeyError(f"No service registered for key '{key}'")

    def register_store(self, name: str, store: Store) -> None:
        self.register_singleton(STORE_KEY_PREFIX + name, store)

    def get_store(self, name: str = "default") -> Store:
        store = self.get(STORE_KEY_PREFIX + name)
        if not isinstance(store, Store):
            raise TypeError(f"Service '{name}' is not a Store")
        return store
