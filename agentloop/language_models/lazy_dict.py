"""
The utility class `LazyLoadingDict` stores objects produced on demand
by a factory function, and memoizes them.

It is used here for two libraries: the prompt library, where the key
is the prompt name, and the LangChain chat models, where the key is a
frozen LanguageModelSettings object. In both cases the factory is
where invalid keys are rejected: it raises ValueError for names or
sources it does not know.

Example:
    ```python
    from typing import Literal

    Greeting = Literal["formal", "casual"]

    def _create_greeting(name: Greeting) -> str:
        match name:
            case "formal":
                return "Good morning."
            case "casual":
                return "Hi!"
            case _:
                raise ValueError(f"Invalid greeting: {name}")

    greetings = LazyLoadingDict(_create_greeting)
    greetings["casual"]     # created by the factory, then memoized
    greetings["slang"]      # ValueError
    greetings["slang"] = "Yo"   # direct assignment bypasses the factory
    ```
"""

from collections.abc import Callable
from typing import TypeVar

ValueT = TypeVar('ValueT')
KeyT = TypeVar('KeyT')


class LazyLoadingDict(dict[KeyT, ValueT]):
    """A dictionary whose missing values are created by a factory
    function and memoized.

    Values may also be assigned directly, bypassing the factory, but
    an existing key cannot be overwritten: delete it first. Values
    removed from the dictionary are closed if they have a close()
    method, or passed to the destructor given to the constructor.
    """

    def __init__(
        self,
        key_creator_func: Callable[[KeyT], ValueT],
        destructor_func: Callable[[ValueT], None] | None = None,
    ):
        super().__init__()
        self._key_creator_func = key_creator_func
        self._destructor_func = destructor_func

    def _destroy_value(self, value: ValueT) -> None:
        if self._destructor_func:
            self._destructor_func(value)
        elif callable(getattr(value, "close", None)):
            value.close()  # type: ignore (checked)

    def __getitem__(self, key: KeyT) -> ValueT:
        if key in self:
            return super().__getitem__(key)

        value: ValueT = self._key_creator_func(key)
        super().__setitem__(key, value)
        return value

    def __setitem__(self, key: KeyT, value: ValueT) -> None:
        """Set a value without calling the factory.

        Raises:
            ValueError: If the key already exists in the dictionary.
        """
        if key in self:
            raise ValueError(
                f"Key '{key}' already exists. Delete it first to overwrite."
            )
        super().__setitem__(key, value)

    def __delitem__(self, key: KeyT) -> None:
        if key in self:
            self._destroy_value(super().__getitem__(key))
        super().__delitem__(key)

    def clear(self) -> None:
        for value in list(self.values()):
            self._destroy_value(value)
        super().clear()
