"""Route parameters and the collection that holds them.

A ParameterCollection keeps two views of its contents:
- an ordered list of every Parameter ever added (duplicates included)
- a name-keyed mapping holding the last Parameter added per name

``delete`` only removes the name-keyed entry; ``all`` keeps reporting the
deleted Parameter.
"""

from typing import Dict, Iterable, Iterator, List, Optional


class Parameter:
    """A named value slot. The name is fixed, the value may change."""

    __slots__ = ("_name", "value")

    def __init__(self, name: str, value: Optional[str] = None):
        self._name = name
        self.value = value

    @property
    def name(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"Parameter(name={self._name!r}, value={self.value!r})"


class ParameterCollection:
    """Ordered collection of parameters with name-based lookup."""

    def __init__(self, parameters: Optional[Iterable[Parameter]] = None):
        """Initialize the collection.

        Args:
            parameters: Optional initial parameters, added in order

        Raises:
            TypeError: If an item is not a Parameter
        """
        self._all: List[Parameter] = []
        self._by_name: Dict[str, Parameter] = {}

        for parameter in parameters or ():
            if not isinstance(parameter, Parameter):
                raise TypeError(
                    f"Parameter must be an instance of [{Parameter.__name__}], "
                    f"got {type(parameter).__name__}"
                )
            self.add(parameter)

    def add(self, parameter: Parameter) -> Parameter:
        """Append a parameter; it replaces any earlier one with the same name in lookups.

        Args:
            parameter: Parameter to add

        Returns:
            The added parameter
        """
        self._all.append(parameter)
        self._by_name[parameter.name] = parameter
        return parameter

    def all(self) -> List[Parameter]:
        """Return every added parameter in insertion order."""
        return list(self._all)

    def has(self, name: str) -> bool:
        return name in self._by_name

    def get(self, name: str) -> Optional[Parameter]:
        return self._by_name.get(name)

    def delete(self, name: str) -> "ParameterCollection":
        """Remove a parameter from name lookups.

        The ordered list returned by ``all`` is left untouched.

        Args:
            name: Parameter name

        Returns:
            This collection
        """
        self._by_name.pop(name, None)
        return self

    def to_dict(self) -> Dict[str, Optional[str]]:
        """Return name to value pairs for the addressable parameters."""
        return {name: parameter.value for name, parameter in self._by_name.items()}

    def __len__(self) -> int:
        return len(self._all)

    def __iter__(self) -> Iterator[Parameter]:
        return iter(self._all)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __repr__(self) -> str:
        return f"ParameterCollection({self._all!r})"
