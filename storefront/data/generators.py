"""
Synthetic Catalogue Generator

Generates a demo product catalogue and a handful of discount codes for
development databases.
"""

import random
from datetime import timedelta
from decimal import Decimal
from typing import List, Optional

from faker import Faker

from storefront.database.models import DiscountType, utcnow
from storefront.schemas import CreateDiscountCodeRequest, CreateProductRequest

# =============================================================================
# CONFIGURATION
# =============================================================================

CATEGORIES = [
    ("electronics", ["Phones", "Laptops", "Tablets", "Headphones", "Cameras"]),
    ("clothing", ["Shirts", "Pants", "Dresses", "Shoes", "Jackets"]),
    ("home_garden", ["Furniture", "Kitchen", "Bedding", "Garden", "Decor"]),
    ("sports", ["Fitness", "Outdoor", "Team Sports", "Water Sports", "Cycling"]),
    ("beauty", ["Skincare", "Makeup", "Haircare", "Fragrance", "Tools"]),
    ("books", ["Fiction", "Non-Fiction", "Educational", "Children", "Comics"]),
]

PRICE_RANGES = {
    "electronics": (50, 2000),
    "clothing": (20, 500),
    "home_garden": (30, 1000),
    "sports": (25, 800),
    "beauty": (10, 200),
    "books": (10, 50),
}


# =============================================================================
# GENERATORS
# =============================================================================

class ProductGenerator:
    """Generate a realistic product catalogue"""

    def __init__(self, seed: Optional[int] = 42):
        self.fake = Faker()
        self.random = random.Random(seed)
        if seed is not None:
            self.fake.seed_instance(seed)

    def generate(self, n: int = 50) -> List[CreateProductRequest]:
        products = []
        for _ in range(n):
            category, subcategories = self.random.choice(CATEGORIES)
            low, high = PRICE_RANGES[category]
            price = Decimal(str(round(self.random.uniform(low, high), 2)))

            products.append(CreateProductRequest(
                name=f"{self.fake.word().title()} {self.random.choice(subcategories)}",
                description=self.fake.sentence(nb_words=15),
                category=category,
                price=price,
                stock=self.random.randint(0, 200),
                is_active=self.random.random() > 0.05,
            ))
        return products


class DiscountCodeGenerator:
    """A fixed set of demo codes covering both discount types"""

    def generate(self) -> List[CreateDiscountCodeRequest]:
        now = utcnow()
        return [
            CreateDiscountCodeRequest(
                code="WELCOME10",
                description="10% off the first order",
                type=DiscountType.PERCENTAGE,
                value=Decimal("10"),
                start_date=now - timedelta(days=1),
                end_date=now + timedelta(days=365),
            ),
            CreateDiscountCodeRequest(
                code="SAVE500",
                description="500 off purchases over 3000",
                type=DiscountType.FIXED_AMOUNT,
                value=Decimal("500"),
                min_purchase=Decimal("3000"),
                max_uses=100,
                start_date=now - timedelta(days=1),
                end_date=now + timedelta(days=90),
            ),
        ]
