"""
Construct Schema Module
-----------------------
Researcher-defined constructs (scales) and their item columns.
Membership is injected configuration: the toolbox never decides which items
belong to a construct, it only checks that they exist.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..errors import ConfigurationError, MissingColumnError


@dataclass(frozen=True)
class ConstructDefinition:
    """A named set of item columns scored as one composite."""
    name: str
    items: Tuple[str, ...]
    impute: bool = False
    description: str = ""

    def __post_init__(self):
        # Accept any iterable of names from config, store as a tuple
        object.__setattr__(self, 'items', tuple(self.items))
        if not self.name:
            raise ConfigurationError("Construct name must not be empty.")
        if not self.items:
            raise ConfigurationError(f"Construct '{self.name}' has no items.")
        duplicates = sorted({item for item in self.items if self.items.count(item) > 1})
        if duplicates:
            raise ConfigurationError(f"Construct '{self.name}' lists items more than once: {duplicates}")


@dataclass(frozen=True)
class ConstructSchema:
    """Ordered mapping from construct name to its definition."""
    constructs: Tuple[ConstructDefinition, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, 'constructs', tuple(self.constructs))
        names = [c.name for c in self.constructs]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate construct names: {duplicates}")

    @classmethod
    def from_config(cls, constructs_config: Dict[str, Any]) -> 'ConstructSchema':
        """
        Builds a schema from the 'constructs' section of the analysis config.

        Each entry is either a plain list of items or a mapping with
        'items' and optional 'impute' / 'description' keys.
        """
        if not isinstance(constructs_config, dict):
            raise ConfigurationError("'constructs' must be a mapping of construct name to items.")
        definitions = []
        for name, entry in constructs_config.items():
            if isinstance(entry, (list, tuple)):
                definitions.append(ConstructDefinition(name=str(name), items=[str(i) for i in entry]))
            elif isinstance(entry, dict):
                items = entry.get('items')
                if not isinstance(items, (list, tuple)):
                    raise ConfigurationError(f"Construct '{name}' needs an 'items' list.")
                definitions.append(ConstructDefinition(
                    name=str(name),
                    items=[str(i) for i in items],
                    impute=bool(entry.get('impute', False)),
                    description=str(entry.get('description', '')),
                ))
            else:
                raise ConfigurationError(f"Construct '{name}' must be a list of items or a mapping.")
        return cls(constructs=definitions)

    def __iter__(self):
        return iter(self.constructs)

    def __len__(self) -> int:
        return len(self.constructs)

    def __contains__(self, name: object) -> bool:
        return any(c.name == name for c in self.constructs)

    @property
    def names(self) -> List[str]:
        return [c.name for c in self.constructs]

    def get(self, name: str) -> ConstructDefinition:
        for construct in self.constructs:
            if construct.name == name:
                return construct
        raise ConfigurationError(f"Unknown construct '{name}'. Known constructs: {self.names}")

    def subset(self, names: Iterable[str]) -> 'ConstructSchema':
        return ConstructSchema(constructs=[self.get(n) for n in names])

    def imputed_constructs(self) -> List[ConstructDefinition]:
        return [c for c in self.constructs if c.impute]

    def items_for(self, names: Optional[Iterable[str]] = None) -> List[str]:
        """Union of the item columns of the named constructs (all if None), first-seen order."""
        selected = self.constructs if names is None else [self.get(n) for n in names]
        seen: Dict[str, None] = {}
        for construct in selected:
            for item in construct.items:
                seen.setdefault(item, None)
        return list(seen)

    def validate(self, columns: Iterable[str]) -> None:
        """
        Checks every construct's items against the table columns.
        Raises MissingColumnError listing every absent item, not just the first.
        """
        available = set(columns)
        missing: List[str] = []
        owners: List[str] = []
        for construct in self.constructs:
            absent = [item for item in construct.items if item not in available]
            if absent:
                owners.append(construct.name)
                missing.extend(item for item in absent if item not in missing)
        if missing:
            raise MissingColumnError(missing, context=f"constructs {owners}")
