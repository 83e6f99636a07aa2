from typing import Any, Dict, Iterator, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Category(BaseModel):
    """
    Canonical category with an ordered list of child categories.

    The subcategory relation must form a tree: no category may be
    reachable from itself by following ``subcategories``.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = ""
    image: Optional[str] = None
    description: str = ""
    source: str
    parent_id: Optional[str] = Field(default=None, alias="parentId")
    subcategories: List["Category"] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_tree(self) -> "Category":
        for _ in self.walk():
            pass
        return self

    def walk(self) -> Iterator["Category"]:
        """
        Depth-first traversal of this category and all descendants.

        Raises:
            ValueError: If a category id repeats along a path from the root
        """
        yield from self._walk(set())

    def _walk(self, ancestors: Set[str]) -> Iterator["Category"]:
        if self.id in ancestors:
            raise ValueError(f"Category '{self.id}' is reachable from itself")
        yield self
        path = ancestors | {self.id}
        for child in self.subcategories:
            yield from child._walk(path)

    def find(self, category_id: str) -> Optional["Category"]:
        """Locate a category by id anywhere in this subtree."""
        for node in self.walk():
            if node.id == category_id:
                return node
        return None

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


Category.model_rebuild()
