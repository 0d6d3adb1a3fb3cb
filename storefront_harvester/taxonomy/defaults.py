"""Built-in collection taxonomy used when no taxonomy file is configured."""

DEFAULT_COLLECTIONS = {
    "digital": {
        "keywords": ["gift card", "subscription", "license", "software", "e-book"],
        "priority": 1,
        "description": "Digital products and services",
    },
    "apparel": {
        "keywords": [
            "t-shirt", "hoodie", "sweatshirt", "jogger", "leggings", "shorts",
            "tank", "bra", "jacket", "hat", "socks", "underwear", "swimwear",
            "dress", "skirt", "pants",
        ],
        "priority": 2,
        "description": "Clothing and apparel",
    },
    "electronics": {
        "keywords": [
            "phone", "tablet", "laptop", "notebook", "computer", "camera",
            "headphone", "speaker", "cable", "charger", "adapter", "dyson",
        ],
        "priority": 3,
        "description": "Electronic devices and accessories",
    },
    "books": {
        "keywords": ["book", "audiobook"],
        "priority": 4,
        "description": "Books and reading materials",
    },
    "home": {
        "keywords": ["decor", "furniture", "kitchen", "bedding", "bath", "lighting", "garden", "pura"],
        "priority": 5,
        "description": "Home and garden products",
    },
    "fitness": {
        "keywords": ["fitness", "gym", "workout", "yoga", "protein", "supplement"],
        "priority": 6,
        "description": "Fitness and wellness products",
    },
    "accessories": {
        "keywords": ["bag", "backpack", "wallet", "case", "pela", "watch", "jewelry", "sunglasses"],
        "priority": 7,
        "description": "Fashion accessories and bags",
    },
    "entertainment": {
        "keywords": ["toy", "game", "puzzle", "netflix"],
        "priority": 8,
        "description": "Entertainment and leisure",
    },
    "tools": {
        "keywords": ["tool", "benchmark", "lift", "apluslift"],
        "priority": 9,
        "description": "Tools and hardware",
    },
    "automotive": {
        "keywords": ["car", "vehicle", "automotive"],
        "priority": 10,
        "description": "Automotive products",
    },
    "health": {
        "keywords": ["health", "wellness", "care", "beactivewear"],
        "priority": 11,
        "description": "Health and personal care",
    },
    "uncategorized": {
        "keywords": [],
        "priority": 99,
        "description": "Products that don't fit other categories",
    },
}
