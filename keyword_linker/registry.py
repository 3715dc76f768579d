from typing import Any, Callable, Dict, List, TypeVar

T = TypeVar("T")


class ComponentRegistry:
    """Named factories for one kind of pluggable component."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._factories: Dict[str, Callable[..., Any]] = {}

    def register(self, name: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
        def decorator(factory: Callable[..., T]) -> Callable[..., T]:
            if name in self._factories:
                raise ValueError(f"{self.kind.capitalize()} '{name}' already registered.")
            self._factories[name] = factory
            return factory

        return decorator

    def __contains__(self, name: str) -> bool:
        return name in self._factories

    def names(self) -> List[str]:
        return sorted(self._factories)

    def get(self, name: str) -> Callable[..., Any]:
        try:
            return self._factories[name]
        except KeyError as exc:
            raise KeyError(
                f"Unknown {self.kind} '{name}' (available: {', '.join(self.names())})"
            ) from exc

    def create(self, name: str, **params: Any) -> Any:
        """Instantiate the component registered as ``name``."""
        return self.get(name)(**params)


loaders = ComponentRegistry("loader")
searchers = ComponentRegistry("searcher")
tokenizers = ComponentRegistry("tokenizer")
