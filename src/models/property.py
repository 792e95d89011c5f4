from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class PropertyDetail:
    id: UUID
    full_address: str = ""
    property_type: str = ""  # SFR, Condo, Townhouse, Multi-Family

    # Valuation
    estimated_value: Decimal = Decimal("0")
    listing_price: Decimal = Decimal("0")

    bedrooms: int = 0
    bathrooms: Decimal = Decimal("0")
    square_feet: Decimal = Decimal("0")

    @property
    def value_basis(self) -> Decimal | None:
        """Best available value for LTV: estimate first, then listing price."""
        if self.estimated_value > 0:
            return self.estimated_value
        if self.listing_price > 0:
            return self.listing_price
        return None
