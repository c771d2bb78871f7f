"""
Configuration settings for the Diagram Studio API
"""

import os
from pathlib import Path
from typing import Set


class Config:
    """Application configuration class"""

    def __init__(self):
        self._load_environment()
        self._setup_directories()
        self._reload_from_environment()
        self._validate_config()

    def _load_environment(self):
        """Load environment variables from .env file"""
        try:
            from dotenv import load_dotenv
            env_path = Path(__file__).parent / '.env'
            if env_path.exists():
                load_dotenv(env_path)
                print(f"✅ Loaded .env file from: {env_path}")
            else:
                load_dotenv()
        except ImportError:
            print("⚠️ python-dotenv not installed, skipping .env file loading")

    def _setup_directories(self):
        """Setup directory paths"""
        self.BASE_DIR = Path(__file__).parent
        self.TEMPLATES_DIR = self.BASE_DIR / "templates"
        self.STATIC_DIR = self.BASE_DIR / "static"

    def _reload_from_environment(self):
        """Re-read values that may only be present after .env loading"""
        self.GROQ_API_KEY = os.getenv("GROQ_API_KEY", "")
        self.DEEPSEEK_API_KEY = os.getenv("DEEPSEEK_API_KEY", "")
        self.FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID", "")
        self.FIREBASE_WEB_API_KEY = os.getenv("FIREBASE_WEB_API_KEY", "")
        self.FIREBASE_AUTH_DOMAIN = os.getenv("FIREBASE_AUTH_DOMAIN", "")

    def _validate_config(self):
        """Validate configuration settings"""
        errors = []
        warnings = []

        if not self.GROQ_API_KEY:
            warnings.append("GROQ_API_KEY is missing - diagram generation will not be available")

        if not self.DEEPSEEK_API_KEY:
            warnings.append("DEEPSEEK_API_KEY is missing - prompt enhancement will not be available")

        if self.MAX_INPUT_TEXT_LENGTH < 1:
            errors.append("MAX_INPUT_TEXT_LENGTH must be at least 1")

        if self.HISTORY_CAPACITY < 1:
            errors.append("HISTORY_CAPACITY must be at least 1")

        if self.EXPORT_SCALE <= 0:
            errors.append("EXPORT_SCALE must be positive")

        # Firestore maps nest at most 20 levels
        if not 1 <= self.MAX_ANALYSIS_DEPTH < 20:
            errors.append("MAX_ANALYSIS_DEPTH must be between 1 and 19")

        if warnings and not self.is_production():
            print("⚠️ Configuration warnings:")
            for warning in warnings:
                print(f"   - {warning}")

        if errors:
            raise ValueError("Configuration errors: " + "; ".join(errors))

    # Server Configuration
    HOST: str = "0.0.0.0"
    PORT: int = int(os.getenv("PORT", "8000"))
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Diagram Generation - Groq
    GROQ_API_KEY: str = ""
    GROQ_MODEL: str = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
    GROQ_TEMPERATURE: float = float(os.getenv("GROQ_TEMPERATURE", "0.2"))
    GROQ_MAX_TOKENS: int = int(os.getenv("GROQ_MAX_TOKENS", "4096"))

    # Prompt Enhancement - DeepSeek
    DEEPSEEK_API_KEY: str = ""
    DEEPSEEK_BASE_URL: str = os.getenv("DEEPSEEK_BASE_URL", "https://api.deepseek.com/v1")
    DEEPSEEK_MODEL: str = os.getenv("DEEPSEEK_MODEL", "deepseek-chat")
    DEEPSEEK_TEMPERATURE: float = float(os.getenv("DEEPSEEK_TEMPERATURE", "0.7"))
    DEEPSEEK_MAX_TOKENS: int = int(os.getenv("DEEPSEEK_MAX_TOKENS", "200"))
    DEEPSEEK_TIMEOUT: float = float(os.getenv("DEEPSEEK_TIMEOUT", "120"))

    # Input / analysis limits
    MAX_INPUT_TEXT_LENGTH: int = int(os.getenv("MAX_INPUT_TEXT_LENGTH", "5000"))
    MAX_FLOW_POINTS: int = int(os.getenv("MAX_FLOW_POINTS", "50"))
    MAX_ANALYSIS_DEPTH: int = int(os.getenv("MAX_ANALYSIS_DEPTH", "4"))
    MAX_ARROW_MEANINGS: int = int(os.getenv("MAX_ARROW_MEANINGS", "50"))

    VALID_DIAGRAM_TYPES: Set[str] = {"er_diagram", "flowchart", "class_diagram"}

    # Firestore
    DIAGRAMS_COLLECTION: str = os.getenv("DIAGRAMS_COLLECTION", "diagrams")

    # Firebase Configuration
    FIREBASE_PROJECT_ID: str = ""
    FIREBASE_SERVICE_ACCOUNT_PATH: str = os.getenv("FIREBASE_SERVICE_ACCOUNT_PATH", "")
    FIREBASE_WEB_API_KEY: str = ""
    FIREBASE_AUTH_DOMAIN: str = ""

    # Dashboard / browser-side behaviour
    EXPORT_RENDER_DELAY_MS: int = int(os.getenv("EXPORT_RENDER_DELAY_MS", "500"))
    EXPORT_SCALE: float = float(os.getenv("EXPORT_SCALE", "2"))
    HISTORY_CAPACITY: int = int(os.getenv("HISTORY_CAPACITY", "10"))

    # CORS Configuration
    CORS_ORIGINS: list = os.getenv("CORS_ORIGINS", "*").split(",") if os.getenv("CORS_ORIGINS", "*") != "*" else ["*"]
    CORS_METHODS: list = ["GET", "POST", "OPTIONS"]
    CORS_HEADERS: list = ["*"]

    # Logging Configuration
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.ENVIRONMENT.lower() == "production"


# Create global config instance
config = Config()

# Apply environment-specific overrides
if config.is_production():
    config.DEBUG = False
    config.LOG_LEVEL = "WARNING"

# Legacy compatibility - expose config values at module level
HOST = config.HOST
PORT = config.PORT
DEBUG = config.DEBUG

# Directory paths
BASE_DIR = config.BASE_DIR
TEMPLATES_DIR = config.TEMPLATES_DIR
STATIC_DIR = config.STATIC_DIR

# Diagram generation
GROQ_API_KEY = config.GROQ_API_KEY
GROQ_MODEL = config.GROQ_MODEL
GROQ_TEMPERATURE = config.GROQ_TEMPERATURE
GROQ_MAX_TOKENS = config.GROQ_MAX_TOKENS

# Prompt enhancement
DEEPSEEK_API_KEY = config.DEEPSEEK_API_KEY
DEEPSEEK_BASE_URL = config.DEEPSEEK_BASE_URL
DEEPSEEK_MODEL = config.DEEPSEEK_MODEL
DEEPSEEK_TEMPERATURE = config.DEEPSEEK_TEMPERATURE
DEEPSEEK_MAX_TOKENS = config.DEEPSEEK_MAX_TOKENS
DEEPSEEK_TIMEOUT = config.DEEPSEEK_TIMEOUT

# Limits
MAX_INPUT_TEXT_LENGTH = config.MAX_INPUT_TEXT_LENGTH
MAX_FLOW_POINTS = config.MAX_FLOW_POINTS
MAX_ARROW_MEANINGS = config.MAX_ARROW_MEANINGS
MAX_ANALYSIS_DEPTH = config.MAX_ANALYSIS_DEPTH
VALID_DIAGRAM_TYPES = config.VALID_DIAGRAM_TYPES

# Firestore / Firebase
DIAGRAMS_COLLECTION = config.DIAGRAMS_COLLECTION
FIREBASE_PROJECT_ID = config.FIREBASE_PROJECT_ID
FIREBASE_SERVICE_ACCOUNT_PATH = config.FIREBASE_SERVICE_ACCOUNT_PATH
FIREBASE_WEB_API_KEY = config.FIREBASE_WEB_API_KEY
FIREBASE_AUTH_DOMAIN = config.FIREBASE_AUTH_DOMAIN

# Dashboard
EXPORT_RENDER_DELAY_MS = config.EXPORT_RENDER_DELAY_MS
EXPORT_SCALE = config.EXPORT_SCALE
HISTORY_CAPACITY = config.HISTORY_CAPACITY

# CORS
CORS_ORIGINS = config.CORS_ORIGINS
CORS_METHODS = config.CORS_METHODS
CORS_HEADERS = config.CORS_HEADERS

# Logging
LOG_LEVEL = config.LOG_LEVEL
LOG_FORMAT = config.LOG_FORMAT

# Print configuration summary on import
if not config.is_production():
    print(f"🔧 Configuration loaded:")
    print(f"   Environment: {config.ENVIRONMENT}")
    print(f"   Diagram Generation (Groq): {'✅' if config.GROQ_API_KEY else '❌'}")
    print(f"   Prompt Enhancement (DeepSeek): {'✅' if config.DEEPSEEK_API_KEY else '❌'}")
    print(f"   Max input length: {config.MAX_INPUT_TEXT_LENGTH} characters")
