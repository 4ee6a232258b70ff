import os

# In a real deployment, load from environment variables or a config file
DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite://./lease_reports.sqlite3")

# Symbol printed in front of monetary values in exported documents
CURRENCY_SYMBOL: str = os.getenv("CURRENCY_SYMBOL", "₼")

# Vertical cursor position (points from the top of the page) after which
# the PDF payment report starts a new page
PDF_PAGE_BREAK_Y: float = float(os.getenv("PDF_PAGE_BREAK_Y", "700"))

# TrueType fonts for the PDF report. They must cover CURRENCY_SYMBOL;
# when unset the bundled DejaVu Sans is used.
PDF_FONT_PATH: str = os.getenv("PDF_FONT_PATH", "")
PDF_BOLD_FONT_PATH: str = os.getenv("PDF_BOLD_FONT_PATH", "")

# Per-session corrected profit values kept in memory
PROFIT_OVERRIDE_MAX_ENTRIES: int = int(os.getenv("PROFIT_OVERRIDE_MAX_ENTRIES", "1024"))
PROFIT_OVERRIDE_TTL_SECONDS: float = float(os.getenv("PROFIT_OVERRIDE_TTL_SECONDS", "86400"))

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# Comma separated logger namespaces, e.g. "lease_reports.features.reports"
LOG_NAMESPACES: list[str] = [
    ns.strip() for ns in os.getenv("LOG_NAMESPACES", "").split(",") if ns.strip()
]
