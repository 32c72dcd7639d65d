from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # MongoDB Configuration
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DB_NAME: str = "storefront_db"
    
    # Cart persistence
    CART_COLLECTION: str = "cart_slots"
    CART_KEY_PREFIX: str = "shopping_cart_"
    
    # Pricing and stock
    SHIPPING_FEE: float = 5.99
    LOW_STOCK_THRESHOLD: int = 5
    
    # Application Settings
    BACKEND_CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]
    API_V1_PREFIX: str = "/api"
    PROJECT_NAME: str = "Storefront"
    
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
