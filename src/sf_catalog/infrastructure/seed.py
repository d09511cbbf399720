"""Starter menu loaded into an empty local product store."""

from datetime import datetime, timezone

from src.sf_catalog.domain.models import Product

_SEEDED_AT = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _item(
    product_id: str, name: str, description: str, price: str, category: str, image: str
) -> Product:
    return Product(
        id=product_id,
        name=name,
        price=price,
        created_at=_SEEDED_AT,
        updated_at=_SEEDED_AT,
        description=description,
        category=category,
        image_url=f"/images/{image}",
        available=True,
    )


SEED_PRODUCTS: list[Product] = [
    _item("1", "Pizza Margherita", "Tomato sauce, mozzarella and fresh basil", "45.90", "Pizza", "pizza-margherita.jpg"),
    _item("2", "Artisan Burger", "180g patty, cheddar, lettuce, tomato and house sauce", "32.90", "Burger", "burger.jpg"),
    _item("3", "Sushi Combo", "20 assorted sushi and sashimi pieces", "89.90", "Japanese", "sushi.jpg"),
    _item("4", "Caesar Salad", "Romaine, croutons, parmesan and caesar dressing", "28.90", "Salad", "salad.jpg"),
    _item("5", "Acai 500ml", "Acai with granola, banana and honey", "22.90", "Dessert", "acai.jpg"),
    _item("6", "Pasta Carbonara", "Spaghetti, pancetta, egg yolk and pecorino", "38.90", "Pasta", "carbonara.jpg"),
    _item("7", "Mexican Tacos", "Three beef tacos with guacamole and pico de gallo", "35.90", "Mexican", "tacos.jpg"),
    _item("8", "Soda Can", "350ml can", "5.90", "Drinks", "soda.jpg"),
]
