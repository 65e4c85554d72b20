from dataclasses import dataclass

from .material import MaterialType


@dataclass
class LibraryItem:
    """
    Catalogue entry. Only the title and the material type matter to the
    fine and report engine; the rest is catalogue bookkeeping.
    """
    item_id: str
    title: str
    material_type: MaterialType
    author: str = ""
    available: bool = True

    def __post_init__(self):
        self.material_type = MaterialType.parse(self.material_type)
