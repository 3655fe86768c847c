# Configuration settings shared across the application

import os

# Remote functions service (edge functions + stored procedures)
FUNCTIONS_BASE_URL = os.getenv("FUNCTIONS_BASE_URL", "http://localhost:54321/functions/v1")
FUNCTIONS_API_KEY = os.getenv("FUNCTIONS_API_KEY", "")
FUNCTIONS_TIMEOUT_SECONDS = float(os.getenv("FUNCTIONS_TIMEOUT_SECONDS", "120"))

# Stored procedure that deducts credits and writes the ledger entry
DEDUCT_CREDITS_PROCEDURE = "deduct_credits_and_log"

# Languages
SUPPORTED_LANGUAGES = [
    {"id": "en", "name": "English"},
    {"id": "pt", "name": "Português"},
]
DEFAULT_LANGUAGE = os.getenv("DEFAULT_LANGUAGE", "pt")

# CORS
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# How many ideas the idea selector shows
IDEAS_LIST_LIMIT = 50

# Default retry policy for tools that opt into retries
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 1.0
DEFAULT_RETRY_BACKOFF = 2.0

# Plans and the credits they grant
PLANS = ["free", "entrepreneur", "business"]

PLAN_CREDITS = {
    "free": {"initial": 3, "monthly": 0},
    "entrepreneur": {"initial": 50, "monthly": 50},
    "business": {"initial": 200, "monthly": 200},
}

# Credits consumed per feature
FEATURE_COSTS = {
    # Core analysis features
    "basic-analysis": 1,
    "reanalysis": 1,
    "advanced-analysis": 10,
    "regulatory-analysis": 2,
    "simulator": 2,
    "comparison": 1,
    "benchmarks": 2,
    "pdf-export": 1,
    "marketplace": 0,
    # Design tools
    "business-name-generator": 3,
    "color-palette": 2,
    # Documentation tools
    "prd-mvp": 5,
    "business-model-canvas": 6,
    "pitch-deck": 10,
    "business-plan": 12,
    "report-creator": 7,
    # Analysis tools
    "market-analysis": 9,
    "financial-analysis": 8,
    "competitor-analysis": 7,
    "user-research": 6,
    "cac-ltv": 8,
    # Marketing tools
    "marketing-strategy": 8,
    "content-marketing": 4,
    "social-posts": 3,
    "seo-analyzer": 5,
    "social-media-planner": 6,
    # Business tools
    "valuation-calculator": 7,
    "process-automation": 9,
    "roadmap-generator": 8,
    "invoice-generator": 4,
    "startup-kit": 15,
    "investment-simulator": 10,
    # Advanced tools
    "trend-analysis": 10,
    "revenue-forecast": 12,
    "pricing-model": 9,
    "market-timing": 8,
    "landing-page-generator": 18,
}

# Plans allowed to use a feature; features not listed are open to every plan
FEATURE_PLAN_REQUIREMENTS = {
    "marketplace": ["entrepreneur", "business"],
    "simulator": ["entrepreneur", "business"],
    "regulatory-analysis": ["entrepreneur", "business"],
    "benchmarks": ["business"],
    "pdf-export": ["entrepreneur", "business"],
}

TOOL_CATEGORIES = ["design", "documentation", "analysis", "marketing", "business", "advanced"]
