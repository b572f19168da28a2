import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./bank.db")

JWT_SECRET = os.getenv("JWT_SECRET", "devsecret")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_ISSUER = os.getenv("JWT_ISSUER", "mini-bank")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "mini-bank-users")
ACCESS_MIN = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
