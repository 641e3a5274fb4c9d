"""Allow-list filtering and keyword classification of collected items."""

from __future__ import annotations

from ideascout.process.keywords import contains_term, matched_terms

# An item must mention at least one of these to be kept
IDEA_ALLOW_LIST = (
    "idea", "startup", "business", "launch", "app", "product", "build",
    "founder", "saas", "platform",
)

# Checked in order; first matching group wins
CATEGORY_RULES = (
    ("B2B & Enterprise", ("b2b", "enterprise", "business")),
    ("SaaS & Software", ("saas", "software", "platform")),
    ("AI & Automation", ("ai", "machine learning", "automation")),
    ("Developer Tools & API", ("api", "developer", "technical")),
    ("Productivity & Workflow", ("productivity", "workflow", "process")),
    ("Startup & Entrepreneurship", ("startup", "entrepreneur", "founder")),
)
DEFAULT_CATEGORY = "Professional Services"

INDUSTRY_RULES = (
    ("Healthcare", ("health", "medical", "patient", "clinic", "wellness")),
    ("Fintech", ("finance", "payment", "banking", "invoice", "accounting")),
    ("E-commerce", ("ecommerce", "e-commerce", "shop", "retail", "marketplace")),
    ("Education", ("education", "learning", "student", "course", "teacher")),
    ("Developer Tools", ("developer", "code", "github", "devops", "api")),
    ("Marketing", ("marketing", "seo", "social media", "advertising", "brand")),
    ("HR & Recruiting", ("hiring", "recruit", "employee", "hr", "payroll")),
)


def passes_allow_list(text: str, terms=IDEA_ALLOW_LIST) -> bool:
    return bool(matched_terms(text, terms))


def classify_category(text: str) -> str:
    for category, terms in CATEGORY_RULES:
        if any(contains_term(text, term) for term in terms):
            return category
    return DEFAULT_CATEGORY


def classify_industry(text: str) -> str | None:
    for industry, terms in INDUSTRY_RULES:
        if any(contains_term(text, term) for term in terms):
            return industry
    return None
