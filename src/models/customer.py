from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class CustomerDetail:
    id: UUID
    first_name: str = ""
    last_name: str = ""
    full_name: str = ""
    email: str = ""
    phone: str = ""

    @property
    def display_name(self) -> str:
        return self.full_name or f"{self.first_name} {self.last_name}".strip()
