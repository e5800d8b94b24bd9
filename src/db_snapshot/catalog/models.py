"""Entity catalog models for declarative dependency ordering.

The catalog lists every entity stored in a snapshot, the table behind it,
its foreign keys to other entities, and any one-to-many children that are
embedded in the parent record.  Restore order is derived from the foreign
keys -- nothing relies on the order statements happen to be written in.

Usage:
    from db_snapshot.catalog.models import EntityCatalog, EntityDef, ForeignKey, NestedChild

    catalog = EntityCatalog(entities=[
        EntityDef(name="authors", table="authors"),
        EntityDef(
            name="books",
            table="books",
            references=[ForeignKey(entity="authors", field="author_id")],
            nested=[NestedChild(key="chapters", table="chapters", parent_field="book_id")],
        ),
    ])

    catalog.create_order()   # ["authors", "books"]
    catalog.delete_order()   # ["books", "authors"]
"""

from pydantic import BaseModel, Field, model_validator

from db_snapshot.errors import CatalogError


class ForeignKey(BaseModel):
    """Foreign key reference to another catalog entity."""

    entity: str         # referenced entity name
    field: str          # FK column in this table


class NestedChild(BaseModel):
    """One-to-many child rows embedded in (and created with) the parent record."""

    key: str                                        # key under the parent record
    table: str                                      # child table name
    parent_field: str                               # FK column back to the parent
    pk: str = "id"                                  # primary key column
    references: list[ForeignKey] = Field(default_factory=list)  # FKs to other entities


class EntityDef(BaseModel):
    """Definition of a top-level snapshot entity."""

    name: str                                       # document key
    table: str                                      # table name
    pk: str = "id"                                  # primary key column
    references: list[ForeignKey] = Field(default_factory=list)
    nested: list[NestedChild] = Field(default_factory=list)

    @property
    def depends_on(self) -> set[str]:
        """Entities whose rows must exist before this entity's rows."""
        deps = {ref.entity for ref in self.references}
        for child in self.nested:
            deps.update(ref.entity for ref in child.references)
        deps.discard(self.name)
        return deps


class EntityCatalog(BaseModel):
    """Declarative entity graph.  Validated on construction."""

    entities: list[EntityDef]

    @model_validator(mode="after")
    def _check_graph(self) -> "EntityCatalog":
        names = [e.name for e in self.entities]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise CatalogError(f"Duplicate entity names: {', '.join(duplicates)}")

        known = set(names)
        for entity in self.entities:
            unknown = entity.depends_on - known
            if unknown:
                raise CatalogError(
                    f"Entity '{entity.name}' references unknown entities: "
                    f"{', '.join(sorted(unknown))}"
                )

        # Raises on cycles
        self.create_order()
        return self

    def get(self, name: str) -> EntityDef:
        """Return the entity definition for *name*.

        Raises:
            KeyError: If no entity has that name.
        """
        for entity in self.entities:
            if entity.name == name:
                return entity
        raise KeyError(name)

    def create_order(self) -> list[str]:
        """Entity names with every entity after all entities it depends on."""
        names = [e.name for e in self.entities]
        return _topological_sort({e.name: e.depends_on for e in self.entities}, names)

    def delete_order(self) -> list[str]:
        """Exact reverse of :meth:`create_order` (dependents first)."""
        return list(reversed(self.create_order()))

    def depends_on(self, name: str) -> set[str]:
        """Entities that *name* depends on."""
        return self.get(name).depends_on

    def nested_children_of(self, name: str) -> list[str]:
        """Keys of the children embedded in *name* records (empty if none)."""
        return [child.key for child in self.get(name).nested]

    def ordered(self) -> list[EntityDef]:
        """Entity definitions in create order."""
        return [self.get(name) for name in self.create_order()]


def _topological_sort(dependencies: dict[str, set[str]], names: list[str]) -> list[str]:
    """Topological sort of entities based on their dependencies.

    Returns entities in forward order: referenced entities first.  Entities
    without ordering constraints keep their declaration order.

    Raises:
        CatalogError: If the dependency graph has a cycle.
    """
    sorted_names: list[str] = []
    visited: set[str] = set()
    visiting: list[str] = []  # current DFS path, for cycle reporting

    def visit(name: str) -> None:
        if name in visited:
            return
        if name in visiting:
            cycle = visiting[visiting.index(name):] + [name]
            raise CatalogError(f"Dependency cycle: {' -> '.join(cycle)}")
        visiting.append(name)
        # Declaration order keeps the result stable
        for dep in sorted(dependencies.get(name, set()), key=names.index):
            visit(dep)
        visiting.pop()
        visited.add(name)
        sorted_names.append(name)

    for name in names:
        visit(name)

    return sorted_names
