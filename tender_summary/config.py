"""
config.py — Central configuration for Tender Summary.

Every tunable lives here: detector vocabularies, OCR settings for scanned
tenders, the OpenRouter model parameters and the HTTP service options.
Most values can be overridden through environment variables so the same
build runs on a laptop and behind the procurement portal without edits.

The detector vocabularies are data, not code. Picking up "Rs." amounts
means adding it to DetectorConfig.currency_symbols; detectors.py builds
its patterns from whatever is listed here.
"""

from dataclasses import dataclass, field
import os
import logging

logger = logging.getLogger(__name__)


def _env_list(name: str, default: str) -> tuple:
    """Comma-separated env var → tuple of stripped, non-empty values."""
    raw = os.getenv(name, default)
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass
class DetectorConfig:
    """
    Vocabulary for the heuristic detectors.

    Only the rupee sign is recognised as a currency prefix by default.
    Other symbols ("Rs.", "INR", "$") can be added here; each one is
    regex-escaped before it goes into the money pattern.
    """
    currency_symbols: tuple = ("₹",)
    amount_units: tuple = ("lakh", "crore", "thousand", "million", "billion")
    eligibility_keywords: tuple = (
        "eligibility", "qualification", "criteria", "requirement", "minimum",
    )
    procurement_keywords: tuple = (
        "tender", "procurement", "bid", "quotation", "rfp", "rfq",
    )


@dataclass
class OCRConfig:
    """
    Tesseract OCR settings, used only for scanned PDF pages and images.

    Pages yielding fewer than scanned_char_threshold characters from
    pdfplumber are treated as scans and rendered at `dpi` for OCR.
    """
    tesseract_cmd: str = os.getenv(
        "TESSERACT_CMD",
        r"C:\Program Files\Tesseract-OCR\tesseract.exe"
        if os.name == "nt"
        else "tesseract",
    )
    lang: str = "eng"
    scanned_char_threshold: int = 50
    dpi: int = 300
    contrast_enhance: bool = True
    denoise: bool = True


@dataclass
class LLMConfig:
    """
    OpenRouter chat-completions settings for API mode.

    The key itself is never stored on the config object; only the name of
    the environment variable is. It is read at call time so a key exported
    after start-up is still picked up.
    """
    api_key_env: str = "OPENROUTER_API_KEY"
    base_url: str = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
    model: str = os.getenv("OPENROUTER_MODEL", "openai/gpt-3.5-turbo")
    max_tokens: int = 1000
    temperature: float = 0.3
    referer: str = "http://localhost:3000"
    title: str = "PDF Summarizer"
    timeout_seconds: float = 60.0
    max_retries: int = 3
    retry_base_delay: float = 2.0


@dataclass
class APIConfig:
    """FastAPI service options."""
    cors_origins: tuple = field(
        default_factory=lambda: _env_list(
            "TENDER_SUMMARY_CORS_ORIGINS",
            "http://localhost:1420,http://localhost:3000,http://localhost:5173",
        )
    )
    default_mode: str = "mock"


@dataclass
class Config:
    """Master config — instantiated once, used everywhere."""
    detectors: DetectorConfig = field(default_factory=DetectorConfig)
    ocr: OCRConfig = field(default_factory=OCRConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    api: APIConfig = field(default_factory=APIConfig)

    max_file_size_mb: int = 50
    # Five full regex scans per call; anything longer is truncated first.
    max_text_chars: int = int(os.getenv("TENDER_SUMMARY_MAX_CHARS", "1000000"))
    supported_formats: tuple = (".pdf", ".txt", ".docx", ".jpg", ".jpeg", ".png")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    def __post_init__(self):
        """Validate on startup so a bad override fails here, not mid-request."""
        if not self.detectors.currency_symbols:
            raise ValueError("At least one currency symbol is required")
        if any(not s for s in self.detectors.currency_symbols):
            raise ValueError("Currency symbols must be non-empty strings")
        if not self.detectors.amount_units:
            raise ValueError("At least one amount unit is required")
        if any(not u for u in self.detectors.amount_units):
            raise ValueError("Amount units must be non-empty strings")
        if self.max_text_chars <= 0:
            raise ValueError(f"max_text_chars must be positive, got {self.max_text_chars}")
        if self.max_file_size_mb <= 0:
            raise ValueError(f"max_file_size_mb must be positive, got {self.max_file_size_mb}")
        if not 0 <= self.llm.temperature <= 2:
            raise ValueError(f"LLM temperature must be [0,2], got {self.llm.temperature}")
        if self.llm.max_retries < 1:
            raise ValueError(f"llm.max_retries must be >= 1, got {self.llm.max_retries}")

        if self.api.default_mode not in ("mock", "api"):
            logger.warning(
                "Unknown default mode '%s'; falling back to 'mock'.",
                self.api.default_mode,
            )
            self.api.default_mode = "mock"


# Singleton — every module imports this same instance
config = Config()
